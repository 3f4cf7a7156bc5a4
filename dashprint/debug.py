"""
Progress output and the debug side channel.

Progress lines go to stderr. With debug_mode on, per-selector diagnostics,
panel geometry details and a raw DOM snapshot are emitted as well; none of
it feeds back into the capture decisions.
"""

import json
import sys
import uuid
from datetime import datetime, timezone
from pathlib import Path

from . import probes
from .config import PANEL_SELECTOR_FAMILIES, CaptureConfig


def log(message: str) -> None:
    print(f"[dashprint] {message}", file=sys.stderr)


def debug(config: CaptureConfig, message: str) -> None:
    if config.debug_mode:
        print(f"[dashprint:debug] {message}", file=sys.stderr)


async def panel_counts(session) -> dict[str, int]:
    """Number of matches for every panel selector family."""
    counts = await session.evaluate(probes.PANEL_COUNTS, list(PANEL_SELECTOR_FAMILIES))
    return {k: int(v) for k, v in (counts or {}).items()}


async def panel_details(session) -> dict:
    """Geometry and computed style of each panel in the first matching family."""
    return await session.evaluate(probes.PANEL_GEOMETRY, list(PANEL_SELECTOR_FAMILIES)) or {}


async def save_dom_snapshot(session, debug_dir: Path) -> Path:
    """Write the current document HTML to debug_dir and return the path."""
    html = await session.content()
    debug_dir = Path(debug_dir)
    debug_dir.mkdir(parents=True, exist_ok=True)

    stamp = datetime.now(timezone.utc).strftime('%Y%m%dT%H%M%S')
    path = debug_dir / f"debug_{stamp}_{uuid.uuid4().hex[:7]}.html"
    path.write_text(html, encoding='utf-8')
    return path


async def emit_diagnostics(session, config: CaptureConfig, log_entries: list[dict]) -> Path | None:
    """Snapshot + geometry dump. No-op unless debug_mode is set."""
    if not config.debug_mode:
        return None

    snapshot = await save_dom_snapshot(session, config.debug_dir)
    debug(config, f"DOM snapshot saved at: {snapshot}")

    details = await panel_details(session)
    debug(config, f"panel details: {json.dumps(details, indent=2)}")

    log_entries.append({
        "action": "debug_snapshot",
        "path": str(snapshot),
        "selector": details.get("selector"),
        "panels": len(details.get("panels", [])),
    })
    return snapshot
