"""Unit tests for the element and CSS provenance tools."""

import pytest

from browser_devtools.cdp.css import DEFAULT_COMPUTED_PROPERTIES
from browser_devtools.config import Configuration
from browser_devtools.exceptions import (
    CDPTimeoutError,
    ElementNotFoundError,
    NoActiveSessionError,
    QueryTimeoutError,
    ShorthandPropertyError,
    UnexpectedError,
)
from browser_devtools.session.manager import Session
from browser_devtools.tools.inspection import get_css_provenance, get_element
from cdp_fakes import (
    FakeConnection,
    FakeSessionManager,
    css_property,
    css_rule,
    matched_styles,
    quad,
)

SHEET_TEXT = "\n".join([
    ".card {",
    "  margin-top: 12px;",
    "}",
    ".card.featured {",
    "  margin-top: 24px;",
    "}",
])

COMPUTED = {
    "computedStyle": [
        {"name": "display", "value": "block"},
        {"name": "margin-top", "value": "24px"},
        {"name": "color", "value": "rgb(0, 0, 0)"},
    ]
}


def page_connection(node_ids=(5, 6), **overrides):
    responses = {
        "DOM.getDocument": {"root": {"nodeId": 1}},
        "DOM.querySelectorAll": {"nodeIds": list(node_ids)},
        "DOM.describeNode": {"node": {"nodeName": "button"}},
        "DOM.getAttributes": {"attributes": ["id", "save", "class", "btn primary"]},
        "DOM.getBoxModel": {
            "model": {
                "content": quad(10, 20, 100, 40),
                "padding": quad(8, 18, 104, 44),
                "border": quad(7, 17, 106, 46),
                "margin": quad(7, 5, 106, 58),
                "width": 106,
                "height": 46,
            }
        },
        "CSS.getComputedStyleForNode": COMPUTED,
        "CSS.getMatchedStylesForNode": matched_styles(rules=[
            css_rule(".card", [css_property("margin-top", "12px", line=1)]),
            css_rule(".card.featured", [css_property("margin-top", "24px", line=4)]),
        ]),
        "CSS.getStyleSheetText": {"text": SHEET_TEXT},
    }
    responses.update(overrides)
    return FakeConnection(
        responses=responses,
        headers={"sheet-1": {"styleSheetId": "sheet-1", "sourceURL": "http://localhost:3000/app.css"}},
    )


def manager_with(connection):
    return FakeSessionManager(Session(config=Configuration(), connection=connection))


@pytest.mark.unit
@pytest.mark.asyncio
class TestGetElement:
    async def test_node_name_only_by_default(self):
        manager = manager_with(page_connection(node_ids=[5]))

        result = await get_element(manager, {"kind": "selector", "value": ".btn"})

        assert result == {"matchCount": 1, "results": [{"exists": True, "nodeName": "BUTTON"}]}
        assert manager.touches == 1

    async def test_id_target_is_escaped(self):
        conn = page_connection(node_ids=[5])
        manager = manager_with(conn)

        await get_element(manager, {"kind": "id", "value": "1st"})

        query = [params for method, params in conn.calls if method == "DOM.querySelectorAll"][0]
        assert query["selector"] == "#\\31 st"

    async def test_include_everything(self):
        manager = manager_with(page_connection(node_ids=[5]))

        result = await get_element(
            manager,
            {"kind": "id", "value": "save"},
            include={"attributes": True, "boxModel": True, "role": True, "computed": ["display"]},
        )

        info = result["results"][0]
        assert info["attributes"] == {"id": "save", "class": "btn primary"}
        assert info["boxModel"]["width"] == 106
        assert info["boxModel"]["content"] == {"x": 10, "y": 20, "width": 100, "height": 40}
        assert info["computed"] == {"display": "block"}
        assert info["role"] == "button"

    async def test_computed_all_defaults(self):
        conn = page_connection(node_ids=[5])
        manager = manager_with(conn)

        result = await get_element(
            manager, {"kind": "selector", "value": "button"}, include={"computed": ["ALL_DEFAULTS"]}
        )

        computed = result["results"][0]["computed"]
        assert set(computed) <= set(DEFAULT_COMPUTED_PROPERTIES)
        assert computed["display"] == "block"

    async def test_missing_box_model_omitted(self):
        conn = page_connection(node_ids=[5])
        del conn.responses["DOM.getBoxModel"]
        manager = manager_with(conn)

        result = await get_element(manager, {"kind": "selector", "value": "b"}, include={"boxModel": True})

        assert "boxModel" not in result["results"][0]

    async def test_max_results_truncates(self):
        manager = manager_with(page_connection(node_ids=range(1, 80)))

        result = await get_element(manager, {"kind": "selector", "value": "li"}, max_results=3)

        assert result["matchCount"] == 3

    async def test_no_match_is_element_not_found(self):
        manager = manager_with(page_connection(node_ids=[]))

        with pytest.raises(ElementNotFoundError) as exc_info:
            await get_element(manager, {"kind": "selector", "value": ".ghost"})

        assert exc_info.value.details["target"] == {"kind": "selector", "value": ".ghost"}
        assert manager.touches == 0

    async def test_max_results_zero_is_element_not_found(self):
        conn = page_connection()
        manager = manager_with(conn)

        with pytest.raises(ElementNotFoundError):
            await get_element(manager, {"kind": "selector", "value": "button"}, max_results=0)

        assert conn.calls == []

    async def test_repeated_calls_are_identical(self):
        manager = manager_with(page_connection())
        target = {"kind": "selector", "value": "button"}
        include = {"attributes": True, "role": True}

        first = await get_element(manager, target, include)
        second = await get_element(manager, target, include)

        assert first == second

    async def test_bad_target_kind(self):
        manager = manager_with(page_connection())

        with pytest.raises(UnexpectedError):
            await get_element(manager, {"kind": "xpath", "value": "//button"})

    async def test_invalid_selector(self):
        conn = page_connection()
        del conn.responses["DOM.querySelectorAll"]
        manager = manager_with(conn)

        with pytest.raises(UnexpectedError, match="Failed to resolve element target"):
            await get_element(manager, {"kind": "selector", "value": "button["})

    async def test_no_session(self):
        with pytest.raises(NoActiveSessionError):
            await get_element(FakeSessionManager(), {"kind": "id", "value": "save"})


@pytest.mark.unit
@pytest.mark.asyncio
class TestGetCssProvenance:
    async def test_winner_per_node(self):
        manager = manager_with(page_connection(node_ids=[5]))

        result = await get_css_provenance(manager, {"kind": "selector", "value": ".card"}, "margin-top")

        assert result["matchCount"] == 1
        info = result["results"][0]
        assert info["property"] == "margin-top"
        assert info["computedValue"] == "24px"
        assert info["winner"] == {
            "source": "stylesheet",
            "selector": ".card.featured",
            "stylesheetUrl": "http://localhost:3000/app.css",
            "line": 4,
            "column": 2,
            "important": False,
            "snippet": "margin-top: 24px;",
            "value": "24px",
        }
        assert "contributors" not in info
        assert manager.touches == 1

    async def test_contributors(self):
        manager = manager_with(page_connection(node_ids=[5]))

        result = await get_css_provenance(
            manager, {"kind": "selector", "value": ".card"}, "margin-top", include_contributors=True
        )

        contributors = result["results"][0]["contributors"]
        assert [c["selector"] for c in contributors] == [".card"]
        assert contributors[0]["snippet"] == "margin-top: 12px;"

    async def test_property_without_declarations(self):
        manager = manager_with(page_connection(node_ids=[5]))

        result = await get_css_provenance(manager, {"kind": "selector", "value": ".card"}, "color")

        info = result["results"][0]
        assert info["computedValue"] == "rgb(0, 0, 0)"
        assert "winner" not in info

    async def test_one_result_per_node(self):
        manager = manager_with(page_connection(node_ids=[5, 6, 7]))

        result = await get_css_provenance(manager, {"kind": "selector", "value": ".card"}, "margin-top")

        assert result["matchCount"] == 3
        assert len(result["results"]) == 3

    @pytest.mark.parametrize("name", ["margin", "border", " padding ", "font", "background"])
    async def test_shorthand_rejected_before_any_query(self, name):
        conn = page_connection()
        manager = manager_with(conn)

        with pytest.raises(ShorthandPropertyError) as exc_info:
            await get_css_provenance(manager, {"kind": "selector", "value": ".card"}, name)

        assert exc_info.value.details["property"] == name.strip()
        assert exc_info.value.details["longhands"]
        assert conn.calls == []

    async def test_property_name_is_case_insensitive(self):
        manager = manager_with(page_connection(node_ids=[5]))

        result = await get_css_provenance(manager, {"kind": "selector", "value": ".card"}, "Margin-Top")

        info = result["results"][0]
        assert info["property"] == "margin-top"
        assert info["computedValue"] == "24px"
        assert info["winner"]["selector"] == ".card.featured"

    async def test_upper_case_shorthand_rejected(self):
        conn = page_connection()
        manager = manager_with(conn)

        with pytest.raises(ShorthandPropertyError) as exc_info:
            await get_css_provenance(manager, {"kind": "selector", "value": ".card"}, "MARGIN")

        assert exc_info.value.details["property"] == "margin"
        assert conn.calls == []

    async def test_custom_property_keeps_case(self):
        computed = {"computedStyle": [{"name": "--Brand-Color", "value": "#0af"}]}
        manager = manager_with(page_connection(node_ids=[5], **{"CSS.getComputedStyleForNode": computed}))

        result = await get_css_provenance(manager, {"kind": "selector", "value": ".card"}, "--Brand-Color")

        info = result["results"][0]
        assert info["property"] == "--Brand-Color"
        assert info["computedValue"] == "#0af"

    async def test_shorthand_rejected_without_session(self):
        with pytest.raises(ShorthandPropertyError):
            await get_css_provenance(FakeSessionManager(), {"kind": "id", "value": "x"}, "margin")

    async def test_no_match(self):
        manager = manager_with(page_connection(node_ids=[]))

        with pytest.raises(ElementNotFoundError):
            await get_css_provenance(manager, {"kind": "id", "value": "ghost"}, "margin-top")

    async def test_query_timeout(self):
        timeout = CDPTimeoutError("timed out", "CSS.getMatchedStylesForNode", 8.0)
        conn = page_connection(**{"CSS.getMatchedStylesForNode": timeout})
        manager = manager_with(conn)

        with pytest.raises(QueryTimeoutError, match="8000ms"):
            await get_css_provenance(manager, {"kind": "selector", "value": ".card"}, "margin-top")
