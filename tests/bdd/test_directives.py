"""Behaviour tests for directive maps.

The scenarios in ``directives.feature`` bind ``@attr``, ``@content`` and
``@self`` directives through :class:`~codeless_ui.CodelessUi` and confirm that
unknown ``@`` keys abort the render with
:class:`~codeless_ui.errors.InvalidDirectiveKeysError`.
"""

from __future__ import annotations

import typing as typ
from pathlib import Path

import pytest
from bs4 import BeautifulSoup
from pytest_bdd import given, scenarios, then, when

from codeless_ui import CodelessUi, InvalidDirectiveKeysError

FEATURE_FILE = Path(__file__).resolve().parents[2] / "features" / "directives.feature"
scenarios(FEATURE_FILE)


@pytest.fixture
def scenario_state() -> dict[str, object]:
    """Return a mutable dict used to share scenario state across BDD steps."""
    return {}


def _render(scenario_state: dict[str, object], selector: str, value: object) -> None:
    ui = CodelessUi()
    ui.set_template(typ.cast("str", scenario_state["template"]))
    ui.assign(selector, value)
    try:
        scenario_state["html"] = ui.render()
    except InvalidDirectiveKeysError as exc:
        scenario_state["error"] = exc


@given("a template with a link")
def given_link(scenario_state: dict[str, object]) -> None:
    scenario_state["template"] = (
        '<html><body><nav><a class="old" href="#">x</a></nav></body></html>'
    )


@given("a template with a single list item")
def given_list(scenario_state: dict[str, object]) -> None:
    scenario_state["template"] = (
        '<html><body><ul>\n  <li class="label">x</li>\n</ul></body></html>'
    )


@when("I bind attributes and content to the link")
def when_bind_link(scenario_state: dict[str, object]) -> None:
    _render(
        scenario_state,
        "nav a",
        {"@attr": {"class": "x", "href": "/home"}, "@content": "hi"},
    )


@when("I bind a list of labels to the item itself")
def when_bind_labels(scenario_state: dict[str, object]) -> None:
    scenario_state["labels"] = ["red", "green", "blue"]
    _render(scenario_state, "li.label", {"@self": scenario_state["labels"]})


@when("I bind a directive map with an unknown key to the link")
def when_bind_unknown(scenario_state: dict[str, object]) -> None:
    _render(scenario_state, "nav a", {"@content": "hi", "@bogus": "?"})


@then("the link carries the new class and text")
def then_link_updated(scenario_state: dict[str, object]) -> None:
    soup = BeautifulSoup(typ.cast("str", scenario_state["html"]), "html.parser")
    link = soup.select_one("nav a")
    assert link is not None, "expected the link to survive rendering"
    assert link.get("class") == ["x"], "the class attribute should be replaced"
    assert link.get("href") == "/home"
    assert link.get_text() == "hi"


@then("the list holds one item per label")
def then_labels(scenario_state: dict[str, object]) -> None:
    soup = BeautifulSoup(typ.cast("str", scenario_state["html"]), "html.parser")
    labels = [item.get_text() for item in soup.select("ul > li.label")]
    assert labels == scenario_state["labels"], f"unexpected list items: {labels}"


@then("the render fails naming the unknown key")
def then_error(scenario_state: dict[str, object]) -> None:
    error = scenario_state.get("error")
    assert isinstance(error, InvalidDirectiveKeysError), "expected the render to fail"
    assert error.unknown == ["@bogus"]
    assert error.selector == "nav a"
    assert "html" not in scenario_state
