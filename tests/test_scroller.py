"""
Tests for dashprint/scroller.py - scroll-triggered lazy loading.
"""

import asyncio
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from dashprint.config import HeightEstimate
from dashprint.scroller import full_traversal, plan_steps, trigger_lazy_load
from tests.fake_page import FakeSession, quick_config


class TestPlanSteps:

    def test_exact(self):
        assert plan_steps(2400, 800) == 6

    def test_rounds_up(self):
        assert plan_steps(2500, 800) == 7

    def test_zero_viewport(self):
        assert plan_steps(2400, 0) == 0


class TestTriggerLazyLoad:

    def test_trustworthy_goes_down_then_up(self):
        session = FakeSession()
        log = []
        steps = asyncio.run(trigger_lazy_load(session, quick_config(), HeightEstimate(2400, "panel_geometry"), log))

        down = [0, 400, 800, 1200, 1600, 2000]
        up = [2400, 2000, 1600, 1200, 800, 400, 0]
        assert session.scroll_positions == down + up
        assert steps == len(down + up)
        assert log == [{"action": "scroll", "mode": "traversal", "steps": 13}]

    def test_untrustworthy_fixed_steps(self):
        """
        Fixed step count, independent of the content height. A viewport
        fallback estimate lands here despite clearing the 100px floor.
        """
        session = FakeSession({
            "VIEWPORT_METRICS": lambda arg: {"viewportHeight": 800, "scrollHeight": 99999},
        })
        log = []
        steps = asyncio.run(trigger_lazy_load(session, quick_config(), HeightEstimate(1600, "viewport_fallback"), log))

        assert steps == 15
        assert session.scroll_positions == [i * 400 for i in range(15)] + [0]
        assert log == [{"action": "scroll", "mode": "fixed", "steps": 15}]

    def test_fixed_step_count_configurable(self):
        session = FakeSession()
        config = quick_config(fallback_scroll_steps=3)
        asyncio.run(trigger_lazy_load(session, config, HeightEstimate(1600, "viewport_fallback"), []))
        assert session.scroll_positions == [0, 400, 800, 0]

    def test_full_traversal_empty_document(self):
        session = FakeSession({
            "VIEWPORT_METRICS": lambda arg: {"viewportHeight": 800, "scrollHeight": 0},
        })
        assert asyncio.run(full_traversal(session, quick_config(), [])) == 1
        assert session.scroll_positions == [0]
