"""
Remote browser session.

The pipeline only needs a small capability surface from the browser tab
(RemoteSession). PlaywrightSession provides it on a headless Chromium page
via the async Playwright API.
"""

import asyncio
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator, Protocol

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from . import probes
from .config import CaptureConfig
from .errors import ExportError, NavigationError


LAUNCH_ARGS = ['--no-sandbox', '--disable-setuid-sandbox', '--disable-gpu']
INITIAL_VIEWPORT_HEIGHT = 800
ZERO_MARGINS = {'top': '0', 'right': '0', 'bottom': '0', 'left': '0'}


class RemoteSession(Protocol):
    """Capabilities the capture pipeline uses from a browser tab."""

    async def navigate(self, url: str, timeout_ms: int) -> str: ...

    async def evaluate(self, script: str, arg: Any = None) -> Any: ...

    async def set_viewport(self, width: int, height: int, scale_factor: int) -> None: ...

    async def export_document(
        self,
        path: Path,
        width: int,
        height: int,
        scale_factor: int,
        print_background: bool = True,
        margins: dict | None = None,
    ) -> Path: ...

    async def content(self) -> str: ...


class PlaywrightSession:
    """RemoteSession backed by a Playwright page."""

    def __init__(self, page, evaluate_timeout_ms: int = 120000):
        self.page = page
        self.evaluate_timeout_ms = evaluate_timeout_ms

    async def navigate(self, url: str, timeout_ms: int) -> str:
        """Go to url and wait for the network to go idle. Returns the final URL."""
        try:
            response = await self.page.goto(url, wait_until='networkidle', timeout=timeout_ms)
        except PlaywrightTimeoutError as e:
            raise NavigationError(f"navigation timed out after {timeout_ms}ms: {url}") from e
        except PlaywrightError as e:
            raise NavigationError(f"navigation failed: {e}") from e

        if response is not None and not response.ok:
            raise NavigationError(f"navigation returned HTTP {response.status}: {url}")
        return self.page.url

    async def evaluate(self, script: str, arg: Any = None) -> Any:
        try:
            return await asyncio.wait_for(
                self.page.evaluate(script, arg),
                timeout=self.evaluate_timeout_ms / 1000,
            )
        except asyncio.TimeoutError as e:
            raise NavigationError(f"page evaluation timed out after {self.evaluate_timeout_ms}ms") from e
        except PlaywrightError as e:
            raise NavigationError(f"page evaluation failed: {e}") from e

    async def set_viewport(self, width: int, height: int, scale_factor: int) -> None:
        # Device scale factor is fixed when the context is created (open_session).
        await self.page.set_viewport_size({'width': width, 'height': height})

    async def export_document(
        self,
        path: Path,
        width: int,
        height: int,
        scale_factor: int,
        print_background: bool = True,
        margins: dict | None = None,
    ) -> Path:
        path = Path(path)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            await self.page.pdf(
                path=str(path),
                width=f'{width}px',
                height=f'{height}px',
                print_background=print_background,
                display_header_footer=False,
                margin=margins or ZERO_MARGINS,
                scale=1,
            )
        except (PlaywrightError, OSError) as e:
            raise ExportError(f"PDF export failed: {e}") from e
        return path

    async def content(self) -> str:
        return await self.page.content()


@asynccontextmanager
async def open_session(
    config: CaptureConfig,
    headers: dict | None = None,
) -> AsyncIterator[PlaywrightSession]:
    """
    Launch headless Chromium and yield a session on a fresh page.

    Args:
        config: Capture configuration (width, scale factor, timeouts)
        headers: Extra HTTP headers sent with every request (e.g. Authorization)
    """
    from playwright.async_api import async_playwright

    async with async_playwright() as p:
        browser = await p.chromium.launch(headless=True, args=LAUNCH_ARGS)
        try:
            context = await browser.new_context(
                viewport={'width': config.width_px, 'height': INITIAL_VIEWPORT_HEIGHT},
                device_scale_factor=config.scale_factor,
                is_mobile=False,
                extra_http_headers=headers or {},
            )
            try:
                page = await context.new_page()
                page.set_default_navigation_timeout(config.navigation_timeout_ms)
                await page.add_init_script(probes.RESOURCE_BUFFER_INIT)

                yield PlaywrightSession(page, evaluate_timeout_ms=config.evaluate_timeout_ms)
            finally:
                await context.close()
        finally:
            await browser.close()
