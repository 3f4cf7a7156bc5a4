"""
Query completion polling.

A fixed render wait either under-waits dashboards with many slow queries
or over-waits small ones. Instead, the expected number of data queries is
counted from the dashboard's own panel manifest, and the observed number is
sampled from resource-timing entries until the two meet. Two ceilings bound
the wait: one on time without progress (stall) and one on total time.
"""

import asyncio
import time
from enum import Enum
from typing import Awaitable, Callable, Iterable

from . import probes
from .config import CaptureConfig, QueryExpectation, QueryProgress
from .debug import debug, log
from .errors import NavigationError, OverallTimeout, StallTimeout
from .scroller import full_traversal


class PollerState(str, Enum):
    NOT_STARTED = 'not-started'
    COUNTING_EXPECTED = 'counting-expected'
    POLLING = 'polling'
    COMPLETE = 'complete'
    STALLED_TIMEOUT = 'stalled-timeout'
    HARD_TIMEOUT = 'hard-timeout'


def panel_has_datasource(panel: dict) -> bool:
    return bool(panel.get('datasource')) or bool(panel.get('targets'))


def count_expected_queries(
    panels: Iterable[dict],
    excluded_types: Iterable[str] = (),
    container_types: Iterable[str] = ('row',),
) -> int:
    """
    Count panels that issue a data query.

    Container panels (rows) are not counted themselves; their nested
    panels are. Excluded panel types never count.
    """
    excluded = set(excluded_types)
    containers = set(container_types)

    count = 0
    for panel in panels or []:
        if not isinstance(panel, dict):
            continue
        panel_type = panel.get('type')
        if panel_type in containers:
            count += count_expected_queries(panel.get('panels', []), excluded, containers)
            continue
        if panel_type in excluded:
            continue
        if panel_has_datasource(panel):
            count += 1
    return count


class QueryPoller:
    """
    Waits until observed data queries reach the expected count.

    Args:
        session: Remote session on the dashboard
        config: Capture configuration (interval and ceilings, in seconds)
        interaction_log: Stage log to append to
        clock: Monotonic time source
        sleep: Awaitable sleep
    """

    def __init__(
        self,
        session,
        config: CaptureConfig,
        interaction_log: list[dict] | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable] = asyncio.sleep,
    ):
        self.session = session
        self.config = config
        self.interaction_log = interaction_log if interaction_log is not None else []
        self.clock = clock
        self.sleep = sleep
        self.state = PollerState.NOT_STARTED
        self.observed = 0

    async def count_expected(self) -> QueryExpectation:
        """Scroll every panel into view once, then count queries from the manifest."""
        self.state = PollerState.COUNTING_EXPECTED
        await full_traversal(self.session, self.config, self.interaction_log)

        try:
            data = await self.session.evaluate(probes.FETCH_MANIFEST, self.config.manifest_url_pattern) or {}
        except NavigationError as e:
            data = {'error': str(e)}

        manifest = data.get('manifest')
        if not isinstance(manifest, dict):
            reason = data.get('error') or f"status {data.get('status')}"
            log(f"Dashboard manifest not available ({reason}); expecting 0 queries.")
            return QueryExpectation(expected=0, manifest_url=data.get('url'))

        dashboard = manifest.get('dashboard', manifest)
        expected = count_expected_queries(
            dashboard.get('panels', []),
            self.config.excluded_panel_types,
            self.config.container_panel_types,
        )
        log(f"Expecting {expected} data queries.")
        return QueryExpectation(expected=expected, manifest_url=data.get('url'))

    async def sample(self) -> int:
        """Current observed query count. Never decreases within a session."""
        count = await self.session.evaluate(probes.QUERY_PROGRESS, self.config.query_url_pattern)
        self.observed = max(self.observed, int(count or 0))
        return self.observed

    async def poll(self, expected: int) -> QueryProgress:
        """
        Sample until observed >= expected.

        Raises:
            StallTimeout: no progress for longer than max_single_query_time
            OverallTimeout: total polling time over overall_query_timeout
        """
        self.state = PollerState.POLLING
        start = self.clock()
        previous_at = start
        previous = None
        stable_for = 0.0

        while True:
            observed = await self.sample()
            now = self.clock()
            elapsed = now - start

            if observed >= expected:
                self.state = PollerState.COMPLETE
                log(f"All {expected} queries finished ({observed} observed) in {elapsed:.1f}s.")
                return QueryProgress(observed=observed, elapsed=elapsed, stable_for=stable_for)

            if previous is not None and observed == previous:
                stable_for += now - previous_at
            else:
                stable_for = 0.0
            debug(self.config, f"queries {observed}/{expected}, stable for {stable_for:.1f}s")

            if stable_for > self.config.max_single_query_time:
                self.state = PollerState.STALLED_TIMEOUT
                raise StallTimeout(stable_for, observed, expected)
            if elapsed > self.config.overall_query_timeout:
                self.state = PollerState.HARD_TIMEOUT
                raise OverallTimeout(elapsed, observed, expected)

            previous = observed
            previous_at = now
            await self.sleep(self.config.poll_interval)

    async def run(self) -> tuple[QueryExpectation, QueryProgress]:
        expectation = await self.count_expected()
        progress = await self.poll(expectation.expected)
        self.interaction_log.append({
            "action": "queries",
            "expected": expectation.expected,
            "observed": progress.observed,
            "elapsed": round(progress.elapsed, 3),
        })
        return expectation, progress
