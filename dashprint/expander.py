"""
Collapsed content expansion.

Handles:
- Clicking collapsed rows/panels so their panels mount and start loading
- Growing panels whose tables overflow their visible region
- Hiding panel chrome that should not appear in the export
- Forcing panels (and their charts) visible before measuring and export
"""

import asyncio

from . import probes
from .config import (
    CHART_SELECTORS,
    CHROME_CLASSES,
    COLLAPSED_SELECTORS,
    PANEL_SELECTOR_FAMILIES,
    TABLE_SELECTORS,
    VISIBILITY_SELECTORS,
    CaptureConfig,
)
from .debug import debug, log


def settle_delay_ms(expanded: int, config: CaptureConfig) -> int:
    """Wait after expanding: base plus a per-element increment, none if nothing expanded."""
    if expanded <= 0:
        return 0
    return config.expand_settle_base_ms + expanded * config.expand_settle_per_element_ms


async def expand_collapsed(session, config: CaptureConfig, interaction_log: list[dict]) -> int:
    """
    Click collapsed rows/panels to reveal their content.

    Zero matches is a normal outcome. Elements that fail to click are
    counted and skipped in page.

    Args:
        session: Remote session on a loaded dashboard
        config: Capture configuration
        interaction_log: Stage log to append to

    Returns:
        Number of elements expanded
    """
    debug(config, "Searching for collapsed panels/rows...")
    result = await session.evaluate(probes.EXPAND_COLLAPSED, list(COLLAPSED_SELECTORS)) or {}
    expanded = int(result.get("expanded", 0))

    for entry in result.get("perSelector", []):
        if entry.get("matched"):
            debug(config, f"{entry['selector']}: matched {entry['matched']}, "
                          f"clicked {entry['clicked']}, errors {entry['errors']}")
        if entry.get("clicked") or entry.get("errors"):
            interaction_log.append({
                "action": "expand",
                "selector": entry["selector"],
                "count": entry.get("clicked", 0),
                "errors": entry.get("errors", 0),
            })

    if not expanded:
        log("No collapsed panels/rows found.")
        return 0

    delay = settle_delay_ms(expanded, config)
    log(f"Expanded {expanded} panels/rows. Waiting {delay}ms for content to load...")
    await asyncio.sleep(delay / 1000)
    interaction_log.append({"action": "wait", "after": "expand", "ms": delay})

    return expanded


async def expand_tables(session, config: CaptureConfig, interaction_log: list[dict]) -> int:
    """
    Grow panels whose table content is taller than the visible region.

    Returns:
        Number of panels grown
    """
    result = await session.evaluate(probes.EXPAND_TABLES, {
        "panelSelectors": list(PANEL_SELECTOR_FAMILIES),
        "tableSelectors": list(TABLE_SELECTORS),
        "padding": config.table_padding_px,
    }) or {}
    grown = int(result.get("grown", 0))

    interaction_log.append({
        "action": "expand_tables",
        "panels": result.get("panels", 0),
        "count": grown,
        "errors": result.get("errors", 0),
    })
    if grown:
        log(f"Grew {grown} table panels to fit their rows.")
    return grown


async def hide_chrome(session, interaction_log: list[dict]) -> int:
    """Hide info corners and resize handles."""
    hidden = int(await session.evaluate(probes.HIDE_CHROME, list(CHROME_CLASSES)) or 0)
    interaction_log.append({"action": "hide_chrome", "count": hidden})
    return hidden


async def force_visibility(
    session,
    config: CaptureConfig,
    interaction_log: list[dict],
    final: bool = False,
) -> int:
    """
    Force panels visible.

    The first pass touches every known panel wrapper. The final pass
    uses the first matching family only and also reveals chart nodes.

    Returns:
        Number of panels touched
    """
    result = await session.evaluate(probes.FORCE_VISIBILITY, {
        "selectors": list(VISIBILITY_SELECTORS),
        "firstOnly": final,
        "chartSelector": CHART_SELECTORS if final else None,
    }) or {}
    panels = int(result.get("panels", 0))

    interaction_log.append({
        "action": "final_visibility" if final else "visibility",
        "count": panels,
        "charts": result.get("charts", 0),
        "errors": result.get("errors", 0),
    })
    debug(config, f"Ensured visibility of {panels} panels ({result.get('errors', 0)} errors)")
    return panels
