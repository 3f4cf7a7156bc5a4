"""
In-page probe tests against headless Chromium.

Skipped when Playwright's Chromium is not installed:
    playwright install chromium
    pytest tests/test_probes_browser.py -v
"""

import asyncio
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import pytest

pytest.importorskip("playwright.async_api")

from dashprint import probes
from dashprint.config import HeightEstimate
from dashprint.expander import expand_collapsed, expand_tables
from dashprint.session import LAUNCH_ARGS, PlaywrightSession
from dashprint.sizing import measure_height
from tests.fake_page import quick_config


UNAVAILABLE = object()


def run_in_page(html: str, scenario):
    """Load html into a fresh page and run scenario(session) on it."""

    async def go():
        from playwright.async_api import async_playwright

        async with async_playwright() as p:
            try:
                browser = await p.chromium.launch(headless=True, args=LAUNCH_ARGS)
            except Exception:
                return UNAVAILABLE
            try:
                page = await browser.new_page(viewport={'width': 1200, 'height': 800})
                await page.set_content(html)
                return await scenario(PlaywrightSession(page))
            finally:
                await browser.close()

    result = asyncio.run(go())
    if result is UNAVAILABLE:
        pytest.skip("chromium not available")
    return result


def _rows(swap_icon: bool) -> str:
    swap = "this.querySelector('i').className = 'fa fa-chevron-down';" if swap_icon else ""
    row = (
        '<div class="dashboard-row dashboard-row--collapsed" '
        f'onclick="this.classList.remove(\'dashboard-row--collapsed\'); {swap} '
        'window.clicks = (window.clicks || 0) + 1;">'
        '<div class="dashboard-row__title"><i class="fa fa-chevron-right"></i> Row</div>'
        '</div>'
    )
    return f"<!DOCTYPE html><html><body>{row * 3}</body></html>"


class TestExpandCollapsedInPage:

    def test_expand_then_idempotent(self):
        async def scenario(session):
            first = await expand_collapsed(session, quick_config(), [])
            second = await expand_collapsed(session, quick_config(), [])
            clicks = await session.evaluate("() => window.clicks")
            return first, second, clicks

        assert run_in_page(_rows(swap_icon=True), scenario) == (3, 0, 3)

    def test_row_and_icon_clicked_once(self):
        """A row matched by both its class and its icon is toggled only once."""
        async def scenario(session):
            expanded = await expand_collapsed(session, quick_config(), [])
            clicks = await session.evaluate("() => window.clicks")
            return expanded, clicks

        assert run_in_page(_rows(swap_icon=False), scenario) == (3, 3)


class TestSizingInPage:

    def test_panel_geometry(self):
        panel = '<div data-testid="panel" style="height: 400px"></div>'
        html = f'<!DOCTYPE html><html><body style="margin: 0">{panel * 3}</body></html>'

        async def scenario(session):
            return await measure_height(session, quick_config(), [])

        assert run_in_page(html, scenario) == HeightEstimate(1300, "panel_geometry")


class TestExpandTablesInPage:

    def test_overflowing_table_grows_panel(self):
        html = (
            '<!DOCTYPE html><html><body style="margin: 0">'
            '<div data-testid="panel" id="p" style="height: 200px">'
            '<div role="table" style="height: 100px; overflow: auto">'
            '<div style="height: 600px"></div>'
            '</div></div>'
            '<div data-testid="panel" style="height: 200px">'
            '<div role="table" style="height: 100px; overflow: auto">'
            '<div style="height: 50px"></div>'
            '</div></div>'
            '</body></html>'
        )

        async def scenario(session):
            grown = await expand_tables(session, quick_config(table_padding_px=40), [])
            height = await session.evaluate("() => document.getElementById('p').offsetHeight")
            return grown, height

        assert run_in_page(html, scenario) == (1, 640)

    def test_height_taken_after_reflow(self):
        """
        The table fills its panel and its rows need 300px more than that,
        so growing the panel grows the content too. 200px panel: first
        measure 500 (panel 540), re-measure 840, final panel 880.
        """
        html = (
            '<!DOCTYPE html><html><body style="margin: 0">'
            '<div data-testid="panel" id="p" style="height: 200px">'
            '<div role="table" style="height: 100%; overflow: auto">'
            '<div style="height: calc(100% + 300px)"></div>'
            '</div></div>'
            '</body></html>'
        )

        async def scenario(session):
            grown = await expand_tables(session, quick_config(table_padding_px=40), [])
            height = await session.evaluate("() => document.getElementById('p').offsetHeight")
            return grown, height

        assert run_in_page(html, scenario) == (1, 880)

    def test_table_within_panel_left_alone(self):
        """A table that scrolls internally but fits the panel is not grown."""
        html = (
            '<!DOCTYPE html><html><body style="margin: 0">'
            '<div data-testid="panel" id="p" style="height: 400px">'
            '<div role="table" style="height: 100px; overflow: auto">'
            '<div style="height: 300px"></div>'
            '</div></div>'
            '</body></html>'
        )

        async def scenario(session):
            grown = await expand_tables(session, quick_config(), [])
            height = await session.evaluate("() => document.getElementById('p').offsetHeight")
            return grown, height

        assert run_in_page(html, scenario) == (0, 400)


class TestLoginSurfaceInPage:

    def test_reset_link(self):
        html = '<html><body><a href="/user/password/send-reset-email">Forgot?</a></body></html>'

        async def scenario(session):
            return await session.evaluate(probes.LOGIN_SURFACE, 'a[href*="reset-email"]')

        assert run_in_page(html, scenario) is True
