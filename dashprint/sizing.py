"""
Document height detection.

No single DOM query measures a dashboard reliably across layout versions,
so height comes from an ordered list of strategies. Each strategy returns a
HeightEstimate or None; the first non-None result wins and later strategies
are never consulted.
"""

import math
from typing import Awaitable, Callable, Sequence

from . import probes
from .config import (
    FALLBACK_MIN_HEIGHT,
    MIN_TRUSTED_HEIGHT,
    PANEL_SELECTOR_FAMILIES,
    SCROLL_CONTAINER_SELECTORS,
    CaptureConfig,
    HeightEstimate,
    PanelGeometry,
)
from .debug import debug, log


Strategy = Callable[..., Awaitable[HeightEstimate | None]]


async def first_success(strategies: Sequence[Strategy], *args) -> HeightEstimate | None:
    """Run strategies in order, return the first non-None result."""
    for strategy in strategies:
        result = await strategy(*args)
        if result is not None:
            return result
    return None


def max_bottom(panels: list[PanelGeometry]) -> float:
    """Lowest panel edge (top + height) across all panels, 0 if none."""
    return max((p.bottom for p in panels), default=0.0)


def fallback_height(viewport_height: float) -> int:
    return max(2 * int(viewport_height), FALLBACK_MIN_HEIGHT)


async def panel_geometry(session, config: CaptureConfig, interaction_log: list[dict]) -> HeightEstimate | None:
    """Aggregate extent of the rendered panels, plus padding."""
    data = await session.evaluate(probes.PANEL_GEOMETRY, list(PANEL_SELECTOR_FAMILIES)) or {}
    panels = [PanelGeometry(**p) for p in data.get("panels", [])]
    if not panels:
        return None

    bottom = max_bottom(panels)
    debug(config, f"{data.get('selector')}: {len(panels)} panels, max bottom {bottom}")
    if bottom <= MIN_TRUSTED_HEIGHT:
        return None

    interaction_log.append({
        "action": "measure",
        "strategy": "panel_geometry",
        "selector": data.get("selector"),
        "panels": len(panels),
    })
    return HeightEstimate(math.ceil(bottom) + config.height_padding_px, "panel_geometry")


async def scroll_container(session, config: CaptureConfig, interaction_log: list[dict]) -> HeightEstimate | None:
    """Height of the main scroll area: first child, then itself, then its box."""
    data = await session.evaluate(probes.SCROLL_CONTAINER, list(SCROLL_CONTAINER_SELECTORS)) or {}
    candidates = (
        ("container_first_child", data.get("firstChildScrollHeight")),
        ("container_scroll", data.get("scrollHeight")),
        ("container_rect", data.get("rectHeight")),
    )
    for name, value in candidates:
        if value is not None and value > MIN_TRUSTED_HEIGHT:
            interaction_log.append({
                "action": "measure",
                "strategy": name,
                "selector": data.get("selector"),
            })
            return HeightEstimate(math.ceil(value), name)

    debug(config, f"scroll container {data.get('selector')} gave no usable height")
    return None


async def viewport_fallback(session, config: CaptureConfig, interaction_log: list[dict]) -> HeightEstimate:
    metrics = await session.evaluate(probes.VIEWPORT_METRICS) or {}
    height = fallback_height(metrics.get("viewportHeight") or 0)
    interaction_log.append({"action": "measure", "strategy": "viewport_fallback"})
    return HeightEstimate(height, "viewport_fallback")


STRATEGIES: tuple[Strategy, ...] = (panel_geometry, scroll_container, viewport_fallback)


async def measure_height(
    session,
    config: CaptureConfig,
    interaction_log: list[dict],
    strategies: Sequence[Strategy] = STRATEGIES,
) -> HeightEstimate:
    """
    Best-effort full document height.

    Returns:
        HeightEstimate from the highest-priority strategy that succeeded
    """
    estimate = await first_success(strategies, session, config, interaction_log)
    if estimate is None:
        estimate = HeightEstimate(FALLBACK_MIN_HEIGHT, "viewport_fallback")
    log(f"Page height {estimate.height}px (strategy: {estimate.strategy})")
    return estimate
