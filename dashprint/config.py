"""
Configuration, selector tables and data model for dashboard capture.
"""

from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Literal

import yaml

from .errors import ConfigError


# Collapsed rows/panels across dashboard layout versions, newest first.
# Only collapsed-state signatures belong here: a second expansion pass
# must not match anything the first pass already opened.
COLLAPSED_SELECTORS = (
    '[data-testid="panel"][aria-expanded="false"]',
    '.panel-collapsed',
    '.row-collapsed',
    '.dashboard-row--collapsed',
    '.dashboard-row[aria-expanded="false"]',
    '.panel-title-container .fa-chevron-right',
    '.panel-title-container .fa-angle-right',
    '.panel-title-container .fa-caret-right',
    '.dashboard-row__title .fa-chevron-right',
    '.dashboard-row__title .fa-angle-right',
    '.dashboard-row__title .fa-caret-right',
    '.row-title-container .fa-chevron-right',
    '.row-title-container .fa-angle-right',
    '.row-title-container .fa-caret-right',
)

# Rendered panel families. First family with any match is used, never merged.
PANEL_SELECTOR_FAMILIES = (
    '[data-testid="panel"]',
    '.panel-container',
    '.react-grid-item',
    '.dashboard-panel',
)

# Visibility passes also cover the older panel wrappers.
VISIBILITY_SELECTORS = PANEL_SELECTOR_FAMILIES + (
    '.grafana-dashboard-panel',
    '.grafana-panel',
)

CHART_SELECTORS = '.graph-canvas, .graph-panel, canvas, svg'

# Main scroll area, newest layout first, ending at the document body.
SCROLL_CONTAINER_SELECTORS = (
    '[data-testid="dashboard-grid"]',
    '[data-testid="scrollbar-view"]',
    '.scrollbar-view',
    '.main-view',
    '.dashboard-container',
    '.react-grid-layout',
    '.dashboard-scroll',
    'main',
    '.panel-container',
    'body',
)

TABLE_SELECTORS = (
    '[role="table"]',
    '.react-table',
    '.table-panel-scroll',
    '.table-panel-container',
)

CHROME_CLASSES = ('panel-info-corner', 'react-resizable-handle')

LOGIN_SURFACE_SELECTOR = 'a[href*="reset-email"]'

# Panel kinds that never issue a data query.
EXCLUDED_PANEL_TYPES = (
    'text',
    'news',
    'dashlist',
    'welcome',
    'gettingstarted',
    'annolist',
    'alertlist',
)

# Panel kinds that nest further panels.
CONTAINER_PANEL_TYPES = ('row',)

# Heights at or below this are treated as "nothing measured".
MIN_TRUSTED_HEIGHT = 100
FALLBACK_MIN_HEIGHT = 1600


@dataclass(frozen=True)
class CaptureConfig:
    """Immutable settings for one capture session."""

    # Output geometry
    width_px: int = 1200
    height_override_px: int | Literal['auto'] = 'auto'
    scale_factor: int = 2

    # Feature gates
    expand_panels: bool = True
    expand_tables: bool = True
    check_queries: bool = False
    check_access: bool = True
    force_kiosk: bool = False

    # Completion poller, seconds
    max_single_query_time: float = 60.0   # stall ceiling
    poll_interval: float = 1.0
    overall_query_timeout: float = 600.0

    # Session timeouts
    navigation_timeout_ms: int = 120000
    evaluate_timeout_ms: int = 120000

    # Settle waits - wait as long as the dashboard needs
    initial_wait_ms: int = 3000
    panel_render_wait_ms: int = 8000
    final_wait_ms: int = 5000
    final_visibility_wait_ms: int = 2000
    expand_settle_base_ms: int = 2000
    expand_settle_per_element_ms: int = 500

    # Scrolling
    scroll_delay_ms: int = 500
    fallback_scroll_steps: int = 15

    # Sizing
    height_padding_px: int = 100
    table_padding_px: int = 40

    # Resource-timing patterns
    query_url_pattern: str = '/api/ds/query'
    manifest_url_pattern: str = '/api/dashboards/uid/'
    excluded_panel_types: tuple[str, ...] = EXCLUDED_PANEL_TYPES
    container_panel_types: tuple[str, ...] = CONTAINER_PANEL_TYPES

    # Debug side channel
    debug_mode: bool = False
    debug_dir: Path = Path('debug')

    def __post_init__(self):
        if not isinstance(self.width_px, int) or self.width_px <= 0:
            raise ConfigError(f"width_px must be a positive int, got {self.width_px!r}")

        override = self.height_override_px
        if override != 'auto' and (not isinstance(override, int) or isinstance(override, bool) or override <= 0):
            raise ConfigError(f"height_override_px must be 'auto' or a positive int, got {override!r}")

        if self.scale_factor <= 0:
            raise ConfigError(f"scale_factor must be positive, got {self.scale_factor!r}")

        for name in ('max_single_query_time', 'poll_interval', 'overall_query_timeout'):
            value = getattr(self, name)
            if not isinstance(value, (int, float)) or value <= 0:
                raise ConfigError(f"{name} must be a positive number, got {value!r}")

        for name in ('excluded_panel_types', 'container_panel_types'):
            # lists from YAML become tuples so the config stays hashable
            object.__setattr__(self, name, tuple(getattr(self, name)))
        object.__setattr__(self, 'debug_dir', Path(self.debug_dir))

    @property
    def auto_height(self) -> bool:
        return self.height_override_px == 'auto'

    @classmethod
    def from_mapping(cls, data: dict) -> 'CaptureConfig':
        """Build a config from a plain mapping of recognized options."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"unknown config options: {', '.join(unknown)}")

        values = dict(data)
        override = values.get('height_override_px')
        if isinstance(override, str) and override.strip().lower() != 'auto':
            try:
                values['height_override_px'] = int(override)
            except ValueError:
                raise ConfigError(f"height_override_px must be 'auto' or an int, got {override!r}") from None
        elif isinstance(override, str):
            values['height_override_px'] = 'auto'
        return cls(**values)


def load_config(path: str | Path) -> CaptureConfig:
    """Load a CaptureConfig from a YAML mapping file."""
    path = Path(path)
    try:
        data = yaml.safe_load(path.read_text(encoding='utf-8'))
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"cannot read config {path}: {e}") from e

    if data is None:
        return CaptureConfig()
    if not isinstance(data, dict):
        raise ConfigError(f"config {path} must be a mapping")
    return CaptureConfig.from_mapping(data)


@dataclass
class PanelGeometry:
    """Bounding box and computed visibility of one rendered panel."""
    top: float
    left: float
    width: float
    height: float
    visible: bool = True
    display: str = ''
    visibility: str = ''
    opacity: str = ''

    @property
    def bottom(self) -> float:
        return self.top + self.height


@dataclass(frozen=True)
class HeightEstimate:
    """A document height and the strategy that produced it."""
    height: int
    strategy: str

    @property
    def trustworthy(self) -> bool:
        return self.strategy != 'viewport_fallback' and self.height >= MIN_TRUSTED_HEIGHT


@dataclass(frozen=True)
class QueryExpectation:
    """Expected number of data queries, from the dashboard manifest."""
    expected: int
    manifest_url: str | None = None


@dataclass(frozen=True)
class QueryProgress:
    """One poll sample."""
    observed: int
    elapsed: float = 0.0
    stable_for: float = 0.0


@dataclass(frozen=True)
class CaptureSpec:
    """Final viewport and export box."""
    width: int
    height: int
    scale_factor: int = 2


@dataclass
class CaptureTimingInfo:
    """Timing information for a capture."""
    navigation_ms: float = 0
    expansion_ms: float = 0
    sizing_ms: float = 0
    scroll_ms: float = 0
    queries_ms: float = 0
    export_ms: float = 0
    total_ms: float = 0


@dataclass
class CaptureResult:
    """Result of capturing a dashboard."""
    url: str
    final_url: str
    output_path: Path
    spec: CaptureSpec
    height_estimate: HeightEstimate
    expanded_count: int = 0
    tables_expanded: int = 0
    scroll_steps: int = 0
    expected_queries: int | None = None
    observed_queries: int | None = None
    panel_counts: dict = field(default_factory=dict)
    debug_snapshot_path: Path | None = None
    timing: CaptureTimingInfo | None = None
    interaction_log: list[dict] = field(default_factory=list)
