"""
Scroll-triggered lazy loading.

Panels that mount only when they enter the viewport are forced to load by
scrolling in half-viewport steps. With a trusted height the page is
traversed down and back up; otherwise a fixed number of steps is taken.
"""

import asyncio
import math

from . import probes
from .config import CaptureConfig, HeightEstimate
from .debug import debug


def plan_steps(scroll_height: float, viewport_height: float) -> int:
    """Half-viewport steps needed to cover scroll_height."""
    if viewport_height <= 0:
        return 0
    return math.ceil(scroll_height / (viewport_height / 2))


async def _scroll_through(session, positions: list[float], delay_ms: int) -> int:
    for y in positions:
        await session.evaluate(probes.SCROLL_TO, y)
        await asyncio.sleep(delay_ms / 1000)
    return len(positions)


async def full_traversal(session, config: CaptureConfig, interaction_log: list[dict]) -> int:
    """Scroll down through the whole document, then back up step by step."""
    metrics = await session.evaluate(probes.VIEWPORT_METRICS) or {}
    viewport_height = metrics.get("viewportHeight") or 0
    steps = plan_steps(metrics.get("scrollHeight") or 0, viewport_height)
    half = viewport_height / 2
    debug(config, f"Planning {steps} scroll steps")

    # Content that mounted late must still be laid out when the export runs,
    # so come back up through every position instead of jumping to the top.
    down = [i * half for i in range(steps)]
    up = [i * half for i in range(steps, -1, -1)]
    taken = await _scroll_through(session, down + up, config.scroll_delay_ms)

    interaction_log.append({"action": "scroll", "mode": "traversal", "steps": taken})
    return taken


async def fixed_scroll(session, config: CaptureConfig, interaction_log: list[dict]) -> int:
    """Fixed number of half-viewport steps down, then back to the top."""
    metrics = await session.evaluate(probes.VIEWPORT_METRICS) or {}
    half = (metrics.get("viewportHeight") or 0) / 2

    positions = [i * half for i in range(config.fallback_scroll_steps)]
    taken = await _scroll_through(session, positions, config.scroll_delay_ms)
    await _scroll_through(session, [0], config.scroll_delay_ms)

    interaction_log.append({"action": "scroll", "mode": "fixed", "steps": taken})
    return taken


async def trigger_lazy_load(
    session,
    config: CaptureConfig,
    estimate: HeightEstimate,
    interaction_log: list[dict],
) -> int:
    """
    Force lazy panels to materialize.

    Returns:
        Number of scroll steps taken (return-to-top excluded in fixed mode)
    """
    if estimate.trustworthy:
        return await full_traversal(session, config, interaction_log)
    return await fixed_scroll(session, config, interaction_log)
