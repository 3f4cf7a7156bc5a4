"""
Dashboard capture pipeline.

Runs the stages strictly in order on one session:
navigate -> expand -> clean up -> measure -> scroll -> (queries) -> export.
Element-level problems inside a stage are logged and skipped; navigation,
auth, query timeouts and export failures end the session.
"""

import asyncio
import time
from pathlib import Path

from .access import check_access, ensure_not_login_surface, is_single_panel_view, with_kiosk
from .config import (
    CaptureConfig,
    CaptureResult,
    CaptureSpec,
    CaptureTimingInfo,
    HeightEstimate,
)
from .debug import emit_diagnostics, log, panel_counts
from .expander import expand_collapsed, expand_tables, force_visibility, hide_chrome
from .queries import QueryPoller
from .scroller import trigger_lazy_load
from .session import ZERO_MARGINS, open_session
from .sizing import measure_height


def resolve_capture_spec(config: CaptureConfig, estimate: HeightEstimate) -> CaptureSpec:
    """Final export box. An operator height override always wins."""
    height = estimate.height if config.auto_height else config.height_override_px
    return CaptureSpec(width=config.width_px, height=height, scale_factor=config.scale_factor)


async def export_pdf(session, spec: CaptureSpec, output_path: Path) -> Path:
    """Size the viewport to the exact export box, then write the PDF once."""
    await session.set_viewport(spec.width, spec.height, spec.scale_factor)
    return await session.export_document(
        Path(output_path),
        width=spec.width,
        height=spec.height,
        scale_factor=spec.scale_factor,
        print_background=True,
        margins=dict(ZERO_MARGINS),
    )


async def _wait(ms: int) -> None:
    if ms > 0:
        await asyncio.sleep(ms / 1000)


def _now_ms() -> float:
    return time.time() * 1000


async def run_pipeline(
    session,
    url: str,
    output_path: Path,
    config: CaptureConfig,
) -> CaptureResult:
    """
    Capture a dashboard on an already-open session.

    Args:
        session: RemoteSession
        url: Dashboard URL to load
        output_path: Where the PDF is written
        config: Capture configuration

    Returns:
        CaptureResult
    """
    timing = CaptureTimingInfo()
    interaction_log: list[dict] = []
    start = _now_ms()

    log(f"Navigating to {url}...")
    final_url = await session.navigate(url, config.navigation_timeout_ms)
    timing.navigation_ms = _now_ms() - start
    log("Page loaded. Waiting for panels to initialize...")
    await _wait(config.initial_wait_ms)

    await ensure_not_login_surface(session)

    # Expansion
    mark = _now_ms()
    expanded = 0
    if config.expand_panels:
        expanded = await expand_collapsed(session, config, interaction_log)
    else:
        log("Automatic expansion of collapsed panels is disabled.")

    tables = 0
    if config.expand_tables:
        tables = await expand_tables(session, config, interaction_log)

    await hide_chrome(session, interaction_log)
    counts = await panel_counts(session)
    log(f"Panel detection counts: {counts}")
    snapshot = await emit_diagnostics(session, config, interaction_log)

    await force_visibility(session, config, interaction_log)
    log("Waiting for all panels to fully render...")
    await _wait(config.panel_render_wait_ms)
    timing.expansion_ms = _now_ms() - mark

    # Sizing
    mark = _now_ms()
    estimate = await measure_height(session, config, interaction_log)
    timing.sizing_ms = _now_ms() - mark

    # Lazy loading
    mark = _now_ms()
    scroll_steps = await trigger_lazy_load(session, config, estimate, interaction_log)
    timing.scroll_ms = _now_ms() - mark

    # Query completion
    expected_queries = None
    observed_queries = None
    if config.check_queries:
        if is_single_panel_view(final_url):
            log("Single-panel view; skipping query completion check.")
            interaction_log.append({"action": "queries", "skipped": "single_panel"})
        else:
            mark = _now_ms()
            expectation, progress = await QueryPoller(session, config, interaction_log).run()
            expected_queries = expectation.expected
            observed_queries = progress.observed
            timing.queries_ms = _now_ms() - mark

    await force_visibility(session, config, interaction_log, final=True)
    await _wait(config.final_visibility_wait_ms)
    log("Final wait for all panels to render completely...")
    await _wait(config.final_wait_ms)

    # Export
    mark = _now_ms()
    spec = resolve_capture_spec(config, estimate)
    log(f"Generating PDF ({spec.width}x{spec.height})...")
    written = await export_pdf(session, spec, output_path)
    timing.export_ms = _now_ms() - mark
    timing.total_ms = _now_ms() - start
    interaction_log.append({"action": "export", "width": spec.width, "height": spec.height})
    log(f"PDF generated: {written}")

    return CaptureResult(
        url=url,
        final_url=final_url,
        output_path=written,
        spec=spec,
        height_estimate=estimate,
        expanded_count=expanded,
        tables_expanded=tables,
        scroll_steps=scroll_steps,
        expected_queries=expected_queries,
        observed_queries=observed_queries,
        panel_counts=counts,
        debug_snapshot_path=snapshot,
        timing=timing,
        interaction_log=interaction_log,
    )


async def capture_dashboard(
    url: str,
    output_path: str | Path,
    config: CaptureConfig | None = None,
    headers: dict | None = None,
    session_factory=open_session,
) -> CaptureResult:
    """
    Capture a dashboard URL to a fixed-size PDF.

    This is the primary interface. It:
    1. Checks the URL answers with HTML (optional)
    2. Opens a browser session and loads the dashboard
    3. Expands, measures, scrolls and (optionally) waits for queries
    4. Exports the PDF at the measured (or overridden) size

    Args:
        url: Dashboard URL
        output_path: Destination PDF path
        config: Capture configuration (uses defaults if None)
        headers: Extra HTTP headers, e.g. Authorization
        session_factory: Async context manager yielding a RemoteSession

    Returns:
        CaptureResult

    Raises:
        CaptureError subclass on any fatal failure
    """
    if config is None:
        config = CaptureConfig()

    if config.check_access:
        log("Checking URL accessibility...")
        await asyncio.to_thread(check_access, url, headers)

    target = with_kiosk(url) if config.force_kiosk else url

    async with session_factory(config, headers) as session:
        return await run_pipeline(session, target, Path(output_path), config)


def capture_dashboard_sync(
    url: str,
    output_path: str | Path,
    config: CaptureConfig | None = None,
    headers: dict | None = None,
) -> CaptureResult:
    """Blocking wrapper around capture_dashboard."""
    return asyncio.run(capture_dashboard(url, output_path, config=config, headers=headers))
