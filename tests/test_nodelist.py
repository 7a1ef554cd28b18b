"""Tests for node-list population and the repeat algorithms."""

from __future__ import annotations

import random

import pytest

from codeless_ui.config import RepeatSpec
from codeless_ui.dom import LxmlDocument, NodeList, NodeListPopulator, SelectorCompiler
from codeless_ui.dom.nodelist import middle_index, split_insert_suffix


def _build(found: int, *, rng: random.Random | None = None) -> tuple[LxmlDocument, NodeListPopulator]:
    items = "".join(f"<li>{index}</li>" for index in range(found))
    document = LxmlDocument.from_markup(f"<html><body><ul>{items}</ul></body></html>")
    populator = NodeListPopulator(document, SelectorCompiler(document), rng)
    return document, populator


def _populate(
    found: int,
    expected: int,
    repeat: str | RepeatSpec,
    *,
    rng: random.Random | None = None,
) -> tuple[LxmlDocument, NodeList]:
    document, populator = _build(found, rng=rng)
    container = document.query("//ul")[0]
    node_list = populator.populate(container, list(range(expected)), repeat)
    return document, node_list


def _texts(node_list: NodeList) -> list[str]:
    return [slot[0].text for slot in node_list]


def _dom_texts(document: LxmlDocument) -> list[str]:
    return [li.text for li in document.query("//li")]


@pytest.mark.parametrize(
    ("repeat", "expected"),
    [
        ("simple", ["0", "1", "2", "0", "1", "2", "0", "1"]),
        ("mirror", ["0", "1", "2", "2", "1", "0", "0", "1"]),
        ("simple once", ["0", "1", "2", "2", "2", "0", "1", "2"]),
    ],
)
def test_wrap_orders(repeat: str, expected: list[str]) -> None:
    document, node_list = _populate(3, 8, repeat)
    assert _texts(node_list) == expected
    assert _dom_texts(document) == expected


def test_inner_padded_inserts_before_middle() -> None:
    document, node_list = _populate(4, 6, "inner_padded")
    assert _texts(node_list) == ["0", "1", "2", "2", "2", "3"]
    assert _dom_texts(document) == ["0", "1", "2", "2", "2", "3"]
    original = document.query("//li")[4]
    assert node_list.slots[4][0] is original


def test_left_inner_padded_uses_lower_middle() -> None:
    _, node_list = _populate(4, 6, "#inner_padded")
    assert _texts(node_list) == ["0", "1", "1", "1", "2", "3"]


def test_justify_without_patches_leaves_list() -> None:
    _, plain = _populate(3, 7, "simple")
    _, justified = _populate(3, 7, "simple justify")
    assert _texts(justified) == _texts(plain)


def test_justify_moves_head_to_tail() -> None:
    document, node_list = _populate(3, 8, "simple justify")
    expected = ["1", "2", "0", "1", "2", "0", "1", "2"]
    assert _texts(node_list) == expected
    assert _dom_texts(document) == expected
    assert len(node_list) == 8


@pytest.mark.parametrize(
    ("repeat", "expected_calls", "expected"),
    [
        ("simple justify", 9, ["2", "3", "4", "0", "1", "2", "3", "3", "4"]),
        ("mirror justify", 9, ["2", "3", "4", "4", "3", "2", "1", "1", "0"]),
        (
            "simple once justify",
            14,
            ["2", "3", "4", "4", "4", "4", "4", "0", "1", "2", "3", "4", "3", "4"],
        ),
    ],
)
def test_justify_relocates_every_patch(
    repeat: str, expected_calls: int, expected: list[str]
) -> None:
    document, node_list = _populate(5, expected_calls, repeat)
    assert _texts(node_list) == expected
    assert _dom_texts(document) == expected


def test_shuffle_is_deterministic_with_seed() -> None:
    _, first = _populate(3, 5, "shuffle", rng=random.Random(7))
    _, second = _populate(3, 5, "shuffle", rng=random.Random(7))
    assert _texts(first) == _texts(second)
    assert sorted(_texts(first)) == ["0", "1", "2", "2", "2"]


@pytest.mark.parametrize("seed", range(10))
def test_shuffle_keeps_named_slots_in_selector_order(seed: int) -> None:
    document = LxmlDocument.from_markup(
        "<html><body><div><h1>t</h1><p>b</p><span>s</span></div></body></html>"
    )
    populator = NodeListPopulator(document, SelectorCompiler(document), random.Random(seed))
    container = document.query("//div")[0]
    node_list = populator.populate(container, ["h1", "p", "span"], "shuffle")
    assert [slot[0].tag for slot in node_list] == ["h1", "p", "span"]


def test_empty_spec_leaves_list_short() -> None:
    document, node_list = _populate(2, 5, "")
    assert len(node_list) == 2
    assert _dom_texts(document) == ["0", "1"]


def test_no_completion_when_enough_elements() -> None:
    _, node_list = _populate(3, 2, "simple")
    assert _texts(node_list) == ["0", "1", "2"]


def test_seek_hands_out_each_slot_once() -> None:
    _, node_list = _populate(2, 2, "simple")
    assert node_list.seek()[0].text == "0"
    assert node_list.seek()[0].text == "1"
    assert node_list.seek() == []
    assert node_list.seek() == []


def test_named_slots_query_relative_to_container() -> None:
    document = LxmlDocument.from_markup(
        "<html><body><div id='card'><h2>t</h2><p class='a'>x</p><p class='a'>y</p></div>"
        "<p class='a'>outside</p></body></html>"
    )
    populator = NodeListPopulator(document, SelectorCompiler(document))
    container = document.query("//div")[0]
    node_list = populator.populate(container, ["h2", "p.a::after", "span"], "simple")
    assert [len(slot) for slot in node_list] == [1, 2, 0]
    assert [node.text for node in node_list.slots[1]] == ["x", "y"]


def test_childless_container_gets_sub_child() -> None:
    document = LxmlDocument.from_markup("<html><body><div class='c'>x</div></body></html>")
    populator = NodeListPopulator(document, SelectorCompiler(document))
    container = document.query("//div")[0]
    node_list = populator.populate(container, [0], "")
    assert len(node_list) == 1
    child = node_list.slots[0][0]
    assert child.getparent() is container
    assert child.get("class") == "c"


def test_self_repeat_starts_from_container() -> None:
    document, populator = _build(2)
    container = document.query("//li")[0]
    node_list = populator.populate(container, [0, 1, 2], "simple", self_repeat=True)
    assert node_list.slots[0][0] is container
    assert _texts(node_list) == ["0", "0", "0"]
    assert _dom_texts(document) == ["0", "0", "0", "1"]


def test_empty_call_list_yields_empty_list() -> None:
    document, populator = _build(2)
    node_list = populator.populate(document.query("//ul")[0], [], "simple")
    assert len(node_list) == 0
    assert node_list.seek() == []


def test_repeat_spec_accepts_instances() -> None:
    _, node_list = _populate(2, 3, RepeatSpec(frozenset({"mirror"})))
    assert _texts(node_list) == ["0", "1", "1"]


@pytest.mark.parametrize(
    ("found", "pad_left", "expected"),
    [(4, False, 2), (4, True, 1), (3, False, 1), (3, True, 1), (1, False, 0), (2, True, 0)],
)
def test_middle_index(found: int, pad_left: bool, expected: int) -> None:
    assert middle_index(found, pad_left=pad_left) == expected


@pytest.mark.parametrize(
    ("key", "expected"),
    [
        ("li::before", ("li", "prepend")),
        ("li:after", ("li", "append")),
        ("@content::after", ("@content", "append")),
        ("li", ("li", "replace")),
        (2, (2, "replace")),
    ],
)
def test_split_insert_suffix(key: str | int, expected: tuple[object, str]) -> None:
    assert split_insert_suffix(key) == expected
