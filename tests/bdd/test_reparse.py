"""Behaviour tests for the reparse pass over inserted markup.

These pytest-bdd scenarios import a card partial into a page slot and bind a
field that only exists inside the partial. The feature file
``reparse.feature`` checks that the field is bound when
``parse_inserted_data`` is enabled, that elements bound by the first pass are
not bound twice, and that the transient reparse marker never reaches the
output.

Usage
-----
Run ``pytest tests/bdd/test_reparse.py -v`` after installing the test extra
(``pip install -e .[test]``). The partial is written to ``tmp_path`` so no
network access is needed.
"""

from __future__ import annotations

import collections
import typing as typ
from pathlib import Path

import pytest
from bs4 import BeautifulSoup
from pytest_bdd import given, scenarios, then, when

from codeless_ui import CodelessUi, RenderConfig
from codeless_ui._constants import CONSUMED_ATTRIBUTE

FEATURE_FILE = Path(__file__).resolve().parents[2] / "features" / "reparse.feature"
scenarios(FEATURE_FILE)


@pytest.fixture
def scenario_state() -> dict[str, object]:
    """Return a mutable dict used to share scenario state across BDD steps."""
    return {}


@given("a page template with an empty card slot")
def given_template(scenario_state: dict[str, object]) -> None:
    """Store a page whose slot is filled by an import."""
    scenario_state["template"] = (
        "<html><body><main>\n"
        '  <section id="slot"></section>\n'
        "</main></body></html>"
    )


@given("a partial file holding a card with a late field")
def given_partial(tmp_path: Path, scenario_state: dict[str, object]) -> None:
    """Write a partial whose ``#card`` element contains a ``.late`` field."""
    partial = tmp_path / "partial.html"
    partial.write_text(
        "<html><body>"
        '<div id="card"><h2>Card</h2><p class="late"></p></div>'
        '<div id="other">ignored</div>'
        "</body></html>",
        encoding="utf-8",
    )
    scenario_state["partial"] = partial


@given("a data stack importing the card and filling the late field")
def given_data(scenario_state: dict[str, object]) -> None:
    """Bind the import to the slot and text to the late field."""
    partial = typ.cast("Path", scenario_state["partial"])
    scenario_state["data"] = {
        "#slot": {"@import": f"file:{partial}#card"},
        ".late": "late text",
    }


def _render(scenario_state: dict[str, object], *, reparse: bool) -> None:
    calls: collections.Counter[str] = collections.Counter()

    def counter(key: str) -> typ.Callable[[typ.Any, typ.Any], None]:
        def record(element: typ.Any, value: typ.Any) -> None:
            calls[key] += 1

        return record

    ui = CodelessUi(RenderConfig(parse_inserted_data=reparse))
    ui.set_template(typ.cast("str", scenario_state["template"]))
    ui.assign_stack(typ.cast("dict[str, typ.Any]", scenario_state["data"]))
    for key in ("#slot", ".late"):
        ui.set_value_modifier(key, counter(key))
    scenario_state["html"] = ui.render()
    scenario_state["calls"] = calls


@when("I render the page with parse_inserted_data enabled")
def when_render_reparse(scenario_state: dict[str, object]) -> None:
    """Render with the reparse pass enabled."""
    _render(scenario_state, reparse=True)


@when("I render the page without reparsing")
def when_render_once(scenario_state: dict[str, object]) -> None:
    """Render with a single pass."""
    _render(scenario_state, reparse=False)


def _late_field(scenario_state: dict[str, object]) -> typ.Any:
    soup = BeautifulSoup(typ.cast("str", scenario_state["html"]), "html.parser")
    late = soup.select_one("#slot #card .late")
    assert late is not None, "expected the imported card inside the slot"
    assert soup.select_one("#other") is None, "only the #card fragment should be imported"
    return late


@then("the late field holds the bound text")
def then_late_bound(scenario_state: dict[str, object]) -> None:
    """Verify the reparse pass bound the imported field."""
    assert _late_field(scenario_state).get_text() == "late text"


@then("the late field is empty")
def then_late_empty(scenario_state: dict[str, object]) -> None:
    """Verify a single pass cannot see markup it inserted."""
    assert _late_field(scenario_state).get_text() == ""


@then("each value modifier ran once")
def then_modifiers_once(scenario_state: dict[str, object]) -> None:
    """Verify the slot was not re-bound by the reparse pass."""
    calls = typ.cast("collections.Counter[str]", scenario_state["calls"])
    assert calls == {"#slot": 1, ".late": 1}, f"unexpected modifier calls: {dict(calls)}"


@then("no reparse markers remain in the output")
def then_no_markers(scenario_state: dict[str, object]) -> None:
    """Verify the consumed-element stamp was stripped after reloading."""
    html = typ.cast("str", scenario_state["html"])
    assert CONSUMED_ATTRIBUTE not in html
    assert "no_parse" not in html
