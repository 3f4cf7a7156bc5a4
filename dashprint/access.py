"""
Reachability and surface checks around navigation.

- check_access: pre-flight GET before a browser is started
- with_kiosk: force kiosk mode in the dashboard URL
- is_single_panel_view: solo-panel URLs skip query counting
- ensure_not_login_surface: fail when the session shows a login page
"""

from urllib.parse import parse_qsl, urlencode, urlparse, urlunparse

import requests

from . import probes
from .config import LOGIN_SURFACE_SELECTOR
from .errors import AccessError, AuthError


def check_access(url: str, headers: dict | None = None, timeout: float = 30.0) -> str:
    """
    Confirm the dashboard URL answers with HTML.

    Args:
        url: Dashboard URL
        headers: Extra request headers (e.g. Authorization)
        timeout: Request timeout in seconds

    Returns:
        The response Content-Type

    Raises:
        AccessError: unreachable, non-success status, or not HTML
    """
    try:
        resp = requests.get(url, headers=headers or {}, timeout=timeout, allow_redirects=True)
    except requests.RequestException as e:
        raise AccessError(f"Unable to access URL: {type(e).__name__}: {e}") from e

    if not resp.ok:
        raise AccessError(f"Unable to access URL. HTTP status: {resp.status_code}")

    content_type = resp.headers.get('Content-Type', '')
    if 'text/html' not in content_type.lower():
        raise AccessError(f"URL is not an HTML dashboard (content type: {content_type or 'missing'})")

    return content_type


def with_kiosk(url: str) -> str:
    """Add kiosk=true unless the URL already carries a kiosk parameter."""
    parsed = urlparse(url)
    params = parse_qsl(parsed.query, keep_blank_values=True)
    if any(key == 'kiosk' for key, _ in params):
        return url
    params.append(('kiosk', 'true'))
    return urlunparse(parsed._replace(query=urlencode(params)))


def is_single_panel_view(url: str) -> bool:
    """True for solo-panel URLs (/d-solo/...) and ?viewPanel= views."""
    parsed = urlparse(url)
    if '/d-solo/' in parsed.path:
        return True
    return any(key == 'viewPanel' and value for key, value in parse_qsl(parsed.query))


async def ensure_not_login_surface(session) -> None:
    """Raise AuthError if the loaded page is a login / password reset surface."""
    if await session.evaluate(probes.LOGIN_SURFACE, LOGIN_SURFACE_SELECTOR):
        raise AuthError("Login page detected. Check your credentials.")
