"""
Error taxonomy for dashboard capture.

Every fatal outcome of a capture session is one of these. Each carries a
stable exit_code so callers can map a failed session to a process status.
"""


class CaptureError(Exception):
    """Base class for fatal capture errors."""
    exit_code = 1


class ConfigError(CaptureError):
    """Invalid capture configuration."""
    exit_code = 2


class AccessError(CaptureError):
    """Target unreachable or not an HTML dashboard."""
    exit_code = 3


class AuthError(CaptureError):
    """Session landed on a login / credential reset surface."""
    exit_code = 4


class NavigationError(CaptureError):
    """Navigation or page evaluation failed or timed out."""
    exit_code = 5


class ExportError(CaptureError):
    """PDF export failed."""
    exit_code = 6


class StallTimeout(CaptureError):
    """Query progress did not advance for longer than the stall ceiling."""
    exit_code = 7

    def __init__(self, stalled_for: float, observed: int, expected: int):
        self.stalled_for = stalled_for
        self.observed = observed
        self.expected = expected
        super().__init__(
            f"queries stalled for {stalled_for:.1f}s at {observed}/{expected}"
        )


class OverallTimeout(CaptureError):
    """Query polling exceeded the overall time ceiling."""
    exit_code = 8

    def __init__(self, elapsed: float, observed: int, expected: int):
        self.elapsed = elapsed
        self.observed = observed
        self.expected = expected
        super().__init__(
            f"queries not finished after {elapsed:.1f}s ({observed}/{expected})"
        )
