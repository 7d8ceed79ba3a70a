"""Unit tests for the navigation, interaction, content and lifecycle tools.

The Playwright page is a MagicMock with AsyncMock methods.
"""

import json
from collections import deque
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest
from playwright.async_api import TimeoutError as PlaywrightTimeout

from browser_devtools.config import Configuration, ScenarioConfig
from browser_devtools.exceptions import (
    JavaScriptExecutionError,
    NavigationBlockedError,
    NavigationTimeoutError,
    NoActiveSessionError,
    UnexpectedError,
)
from browser_devtools.session.manager import Session
from browser_devtools.tools.content import (
    evaluate_javascript,
    get_console_logs,
    get_page_content,
    take_screenshot,
)
from browser_devtools.tools.interactions import execute_action, page_interact
from browser_devtools.tools.lifecycle import describe_start_tool, start_session, stop_session
from browser_devtools.tools.navigation import navigate
from cdp_fakes import FakeSessionManager


def make_page(url="http://localhost:3000/"):
    page = MagicMock()
    page.url = url
    for name in (
        "goto", "click", "fill", "type", "press", "select_option", "wait_for_timeout",
        "wait_for_selector", "wait_for_load_state", "content", "screenshot", "evaluate",
    ):
        setattr(page, name, AsyncMock())
    return page


def make_manager(page=None, **config_values):
    config = Configuration()
    config.merge(**config_values)
    session = Session(config=config, page=page or make_page())
    return FakeSessionManager(session)


@pytest.mark.unit
@pytest.mark.asyncio
class TestNavigate:
    async def test_relative_url_resolved_against_base(self):
        manager = make_manager(base_url="http://localhost:3000")
        page = manager.session.page
        page.url = "http://localhost:3000/settings"

        result = await navigate(manager, "/settings")

        page.goto.assert_awaited_once_with(
            "http://localhost:3000/settings", wait_until="networkidle", timeout=15_000
        )
        assert result == {"finalUrl": "http://localhost:3000/settings"}
        assert manager.touches == 1

    async def test_wait_state(self):
        manager = make_manager()

        await navigate(manager, "http://localhost:3000/", wait="domcontentloaded")

        assert manager.session.page.goto.call_args.kwargs["wait_until"] == "domcontentloaded"

    async def test_invalid_wait_state(self):
        manager = make_manager()

        with pytest.raises(UnexpectedError, match="Invalid wait state"):
            await navigate(manager, "http://localhost:3000/", wait="idle")

    async def test_blocked_origin(self):
        manager = make_manager(allowed_origins=["http://localhost:3000"])

        with pytest.raises(NavigationBlockedError) as exc_info:
            await navigate(manager, "https://evil.test/")

        assert exc_info.value.details == {
            "url": "https://evil.test/",
            "allowedOrigins": ["http://localhost:3000"],
        }
        manager.session.page.goto.assert_not_awaited()
        assert manager.touches == 0

    async def test_timeout(self):
        manager = make_manager(navigation_ms=500)
        manager.session.page.goto.side_effect = PlaywrightTimeout("Timeout 500ms exceeded.")

        with pytest.raises(NavigationTimeoutError, match="500ms"):
            await navigate(manager, "http://localhost:3000/slow")

    async def test_other_failure(self):
        manager = make_manager()
        manager.session.page.goto.side_effect = RuntimeError("net::ERR_NAME_NOT_RESOLVED")

        with pytest.raises(UnexpectedError, match="Navigation failed"):
            await navigate(manager, "http://nowhere.test/")

    async def test_no_session(self):
        with pytest.raises(NoActiveSessionError):
            await navigate(FakeSessionManager(), "http://localhost:3000/")


@pytest.mark.unit
@pytest.mark.asyncio
class TestPageInteract:
    async def test_all_actions_succeed(self):
        manager = make_manager()
        page = manager.session.page

        result = await page_interact(manager, [
            {"type": "fill", "selector": "#email", "value": "a@b.test"},
            {"type": "click", "selector": "#save", "options": {"clickCount": 2}},
            {"type": "waitForNavigation", "options": {"waitUntil": "load"}},
        ])

        assert result == {"ok": True}
        page.fill.assert_awaited_once_with("#email", "a@b.test", timeout=5000)
        page.click.assert_awaited_once_with("#save", click_count=2, timeout=5000)
        page.wait_for_load_state.assert_awaited_once_with("load", timeout=5000)
        assert manager.touches == 1

    async def test_stops_at_first_failure(self):
        manager = make_manager()
        page = manager.session.page
        page.click.side_effect = RuntimeError("element is not visible")
        actions = [
            {"type": "fill", "selector": "#email", "value": "a@b.test"},
            {"type": "click", "selector": "#save"},
            {"type": "press", "selector": "#email", "key": "Enter"},
        ]

        result = await page_interact(manager, actions)

        assert result == {
            "ok": False,
            "failedAtIndex": 1,
            "error": "element is not visible",
            "action": actions[1],
        }
        page.press.assert_not_awaited()
        assert manager.touches == 0

    async def test_missing_field_reported(self):
        manager = make_manager()

        result = await page_interact(manager, [{"type": "fill", "selector": "#email"}])

        assert result["failedAtIndex"] == 0
        assert "requires 'value'" in result["error"]

    async def test_unknown_action_type(self):
        manager = make_manager()

        result = await page_interact(manager, [{"type": "hover", "selector": "#x"}])

        assert result["ok"] is False
        assert "Unknown action type" in result["error"]

    async def test_no_session(self):
        with pytest.raises(NoActiveSessionError):
            await page_interact(FakeSessionManager(), [])


@pytest.mark.unit
@pytest.mark.asyncio
class TestExecuteAction:
    async def test_select(self):
        page = make_page()
        await execute_action(page, {"type": "select", "selector": "#size", "values": ["m"]})
        page.select_option.assert_awaited_once_with("#size", ["m"], timeout=5000)

    async def test_wait(self):
        page = make_page()
        await execute_action(page, {"type": "wait", "delay": 250})
        page.wait_for_timeout.assert_awaited_once_with(250)

    async def test_wait_for_selector_timeout_override(self):
        page = make_page()
        await execute_action(
            page,
            {"type": "waitForSelector", "selector": ".results", "options": {"state": "visible", "timeout": 100}},
        )
        page.wait_for_selector.assert_awaited_once_with(".results", state="visible", timeout=100)

    async def test_type_and_press(self):
        page = make_page()
        await execute_action(page, {"type": "type", "selector": "#q", "text": "shoes"})
        await execute_action(page, {"type": "press", "selector": "#q", "key": "Enter"})
        page.type.assert_awaited_once_with("#q", "shoes", timeout=5000)
        page.press.assert_awaited_once_with("#q", "Enter", timeout=5000)


@pytest.mark.unit
@pytest.mark.asyncio
class TestPageContent:
    async def test_full_content(self):
        manager = make_manager()
        manager.session.page.content.return_value = "<html><body>hi</body></html>"

        result = await get_page_content(manager)

        assert result == {"html": "<html><body>hi</body></html>", "fullLength": 28}

    async def test_slice(self):
        manager = make_manager()
        manager.session.page.content.return_value = "<html><body>hi</body></html>"

        result = await get_page_content(manager, start=6, length=6)

        assert result == {"html": "<body>", "fullLength": 28}

    async def test_failure(self):
        manager = make_manager()
        manager.session.page.content.side_effect = RuntimeError("Target closed")

        with pytest.raises(UnexpectedError, match="Failed to get page content"):
            await get_page_content(manager)


@pytest.mark.unit
@pytest.mark.asyncio
class TestScreenshot:
    async def test_png(self):
        manager = make_manager()

        result = await take_screenshot(manager, full_page=True)

        path = result["screenshotPath"]
        assert Path(path).name.startswith("browser-devtools-screenshot-")
        assert path.endswith(".png")
        manager.session.page.screenshot.assert_awaited_once_with(path=path, full_page=True, type="png")

    async def test_jpeg_quality(self):
        manager = make_manager()

        result = await take_screenshot(manager, image_type="jpeg", quality=60)

        kwargs = manager.session.page.screenshot.call_args.kwargs
        assert kwargs["quality"] == 60
        assert result["screenshotPath"].endswith(".jpg")

    async def test_png_ignores_quality(self):
        manager = make_manager()

        await take_screenshot(manager, quality=60)

        assert "quality" not in manager.session.page.screenshot.call_args.kwargs

    async def test_unsupported_type(self):
        with pytest.raises(UnexpectedError):
            await take_screenshot(make_manager(), image_type="gif")


@pytest.mark.unit
@pytest.mark.asyncio
class TestEvaluateJavascript:
    async def test_inline_result(self):
        manager = make_manager()
        manager.session.page.evaluate.return_value = {"title": "Dashboard"}

        result = await evaluate_javascript(manager, "return {title: document.title}")

        assert result == {"ok": True, "result": {"title": "Dashboard"}}
        assert manager.session.page.evaluate.call_args.args[1] == "return {title: document.title}"

    async def test_save_to_file(self):
        manager = make_manager()
        manager.session.page.evaluate.return_value = {"items": ["café", 2]}

        result = await evaluate_javascript(manager, "return data", save_to_file=True)

        path = Path(result["resultPath"])
        try:
            content = path.read_text(encoding="utf-8")
            assert json.loads(content) == {"items": ["café", 2]}
            assert result["resultSize"] == len(content.encode("utf-8"))
            assert "result" not in result
        finally:
            path.unlink()

    async def test_script_error(self):
        manager = make_manager()
        manager.session.page.evaluate.side_effect = RuntimeError("ReferenceError: foo is not defined")

        with pytest.raises(JavaScriptExecutionError, match="foo is not defined"):
            await evaluate_javascript(manager, "return foo")

        assert manager.touches == 0


@pytest.mark.unit
@pytest.mark.asyncio
class TestConsoleLogs:
    @pytest.fixture
    def manager(self):
        manager = make_manager()
        manager.session.console_messages = deque([
            {"type": "log", "text": "App booted", "timestamp": 1, "location": {}},
            {"type": "warn", "text": "Deprecated prop", "timestamp": 2, "location": {}},
            {"type": "error", "text": "Failed to load /api/user", "timestamp": 3, "location": {}},
            {"type": "error", "text": "Failed to load /api/cart", "timestamp": 4, "location": {}},
        ])
        return manager

    async def test_all(self, manager):
        result = await get_console_logs(manager)

        assert result["totalMessages"] == 4
        assert [m["timestamp"] for m in result["messages"]] == [1, 2, 3, 4]

    async def test_level_filter(self, manager):
        result = await get_console_logs(manager, level="error")
        assert result["totalMessages"] == 2

    async def test_search_is_case_insensitive(self, manager):
        result = await get_console_logs(manager, search="DEPRECATED")
        assert [m["type"] for m in result["messages"]] == ["warn"]

    async def test_limit_keeps_newest_and_total(self, manager):
        result = await get_console_logs(manager, level="error", limit=1)

        assert result["totalMessages"] == 2
        assert [m["text"] for m in result["messages"]] == ["Failed to load /api/cart"]


@pytest.mark.unit
@pytest.mark.asyncio
class TestLifecycleTools:
    async def test_start_then_navigate(self):
        manager = make_manager()
        manager.start = AsyncMock()

        result = await start_session(manager, scenario="a", interactive=True, url="http://localhost:3000/")

        assert result == {"ok": True}
        manager.start.assert_awaited_once_with(scenario="a", interactive=True)
        manager.session.page.goto.assert_awaited_once()

    async def test_start_without_url(self):
        manager = make_manager()
        manager.start = AsyncMock()

        await start_session(manager)

        manager.session.page.goto.assert_not_awaited()

    async def test_stop(self):
        manager = make_manager()
        manager.stop = AsyncMock()

        assert await stop_session(manager) == {"ok": True}
        manager.stop.assert_awaited_once()


@pytest.mark.unit
class TestStartToolDescription:
    def test_start_description_lists_scenarios(self):
        config = Configuration()
        config.scenarios = {
            "mobile": ScenarioConfig(use="start_mobile"),
            "logged-in": ScenarioConfig(use="start_logged_in", description="Signed-in user"),
        }

        description = describe_start_tool(config)

        assert "logged-in: Signed-in user" in description
        assert "mobile: start_mobile" in description
        assert description.index("logged-in") < description.index("mobile:")
