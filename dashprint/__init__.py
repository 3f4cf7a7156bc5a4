"""
Dashboard to PDF capture.

Primary interface:
    from dashprint import capture_dashboard, CaptureConfig

    result = await capture_dashboard(
        "https://grafana.example.com/d/abc123/ops?from=now-24h&to=now",
        "output/ops.pdf",
        config=CaptureConfig(width_px=1600, check_queries=True),
        headers={"Authorization": "Basic ..."},
    )

    # Returns CaptureResult with:
    # - output_path, spec (width/height/scale_factor)
    # - height_estimate (height + strategy that produced it)
    # - expanded_count, tables_expanded, scroll_steps
    # - expected_queries, observed_queries
    # - timing, interaction_log

Fatal failures raise a CaptureError subclass carrying a stable exit_code.
"""

from .capture import capture_dashboard, capture_dashboard_sync, resolve_capture_spec, run_pipeline
from .config import (
    CaptureConfig,
    CaptureResult,
    CaptureSpec,
    HeightEstimate,
    load_config,
)
from .errors import (
    AccessError,
    AuthError,
    CaptureError,
    ConfigError,
    ExportError,
    NavigationError,
    OverallTimeout,
    StallTimeout,
)
from .session import PlaywrightSession, RemoteSession, open_session


__all__ = [
    'capture_dashboard',
    'capture_dashboard_sync',
    'run_pipeline',
    'resolve_capture_spec',
    'open_session',
    'PlaywrightSession',
    'RemoteSession',
    'CaptureConfig',
    'CaptureResult',
    'CaptureSpec',
    'HeightEstimate',
    'load_config',
    'CaptureError',
    'ConfigError',
    'AccessError',
    'AuthError',
    'NavigationError',
    'ExportError',
    'StallTimeout',
    'OverallTimeout',
]
