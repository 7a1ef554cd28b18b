"""Resolve one slot per call-list entry, duplicating siblings when short.

A container that must provide more slots than it has elements is completed by
cloning existing elements according to a :class:`RepeatSpec`:

``simple``
    Cycle forward through the found elements: ``0, 1, .., F-1, 0, 1, ..``.
``mirror``
    Bounce between the ends: ``F-1, .., 0, 0, .., F-1, F-1, ..``.
``once``
    Hold the wrap back until one final cycle exactly fills the list.
``inner_padded`` / ``#inner_padded``
    Insert the clones before the middle element instead of wrapping.
``justify``
    Move part of the remainder from the head of the list to its tail.
``shuffle``
    Randomize the final slot order of positional and self-repeating lists.
    Named slots keep the order of their selectors.
"""

from __future__ import annotations

import dataclasses as dc
import logging
import random
import typing as typ

from codeless_ui._constants import INSERT_SUFFIXES
from codeless_ui.config.models import RepeatSpec

if typ.TYPE_CHECKING:
    from .document import Document, InsertMode, Node
    from .selector import SelectorCompiler

log = logging.getLogger(__name__)

Slot = list["Node"]
CallKey = str | int


def split_insert_suffix(key: CallKey) -> tuple[CallKey, InsertMode]:
    """Return ``key`` without a ``::before``/``::after`` suffix and its mode.

    Examples
    --------
    >>> split_insert_suffix("li.item::after")
    ('li.item', 'append')
    >>> split_insert_suffix(3)
    (3, 'replace')
    """
    if isinstance(key, str):
        for suffix, mode in INSERT_SUFFIXES.items():
            if key.endswith(suffix):
                return key[: -len(suffix)].rstrip(), typ.cast("InsertMode", mode)
    return key, "replace"


@dc.dataclass(slots=True)
class NodeList:
    """Ordered slots handed out once each by :meth:`seek`."""

    slots: list[Slot] = dc.field(default_factory=list)
    cursor: int = -1

    def seek(self) -> Slot:
        """Advance the cursor and return its slot; empty once exhausted."""
        self.cursor += 1
        if self.cursor < len(self.slots):
            return self.slots[self.cursor]
        return []

    def __len__(self) -> int:
        return len(self.slots)

    def __iter__(self) -> typ.Iterator[Slot]:
        return iter(self.slots)


def middle_index(found: int, *, pad_left: bool = False) -> int:
    """Return the index padding clones are inserted before.

    Examples
    --------
    >>> middle_index(4)
    2
    >>> middle_index(4, pad_left=True)
    1
    >>> middle_index(3)
    1
    """
    half = (found + 1) // 2
    if half * 2 < found:
        offset = 1
    elif half * 2 > found:
        offset = -1
    else:
        offset = 0
    middle = half + offset
    if pad_left and found % 2 == 0 and middle > 0:
        middle -= 1
    return middle


class _Cursor:
    """The wrap state machine shared by ``simple``, ``mirror`` and ``once``."""

    __slots__ = ("found", "expected", "spec", "position", "move")

    def __init__(self, found: int, expected: int, spec: RepeatSpec) -> None:
        self.found = found
        self.expected = expected
        self.spec = spec
        self.position: int | None = None
        self.move: str | None = None

    def advance(self, key: int) -> int:
        if self.move == "+":
            if self.position < self.found:
                self.position += 1
        elif self.move == "-":
            if self.position > 0:
                self.position -= 1
            else:
                self.move = "+"
        if self.position is None or self.position == self.found:
            self._wrap(key)
        return typ.cast("int", self.position)

    def _wrap(self, key: int) -> None:
        may_wrap = not self.spec.once or key + self.found >= self.expected
        if may_wrap and self.spec.wrap == "simple":
            self.position, self.move = 0, "+"
        elif may_wrap and self.spec.wrap == "mirror":
            self.position, self.move = self.found - 1, "-"
        if self.position is None:
            self.position, self.move = self.found - 1, "+"


class NodeListPopulator:
    """Build :class:`NodeList` objects for containers of one document.

    Parameters
    ----------
    document : Document
        Tree the slots live in; clones are inserted into it.
    compiler : SelectorCompiler
        Resolves named call-list entries relative to the container.
    rng : random.Random, optional
        Source of randomness for ``shuffle``.
    """

    def __init__(
        self,
        document: Document,
        compiler: SelectorCompiler,
        rng: random.Random | None = None,
    ) -> None:
        self.document = document
        self.compiler = compiler
        self.rng = rng or random.Random()  # noqa: S311

    def populate(
        self,
        container: Node,
        call_list: typ.Sequence[CallKey],
        repeat: RepeatSpec | str | None,
        *,
        self_repeat: bool = False,
    ) -> NodeList:
        """Return one slot per entry of ``call_list`` for ``container``.

        Parameters
        ----------
        container : Node
            Element whose children (or, with ``self_repeat``, itself) fill
            the slots.
        call_list : Sequence[str | int]
            Selector keys (named population) or positions (positional).
        repeat : RepeatSpec | str | None
            Completion flags; an empty spec leaves a short list short.
        self_repeat : bool, optional
            Start from ``[container]`` and repeat the container itself.

        Returns
        -------
        NodeList
            Slots in call-list order, completed to ``len(call_list)`` when a
            repeat spec allows it.
        """
        spec = RepeatSpec.parse(repeat)
        calls = list(call_list)
        node_list = NodeList()
        if not calls:
            return node_list
        named = not self_repeat and all(isinstance(key, str) for key in calls)
        if self_repeat:
            node_list.slots.append([container])
        elif named:
            for key in calls:
                selector, _ = split_insert_suffix(key)
                node_list.slots.append(self.compiler.compile(str(selector), container))
        else:
            children = self.document.element_children(container)
            if not children:
                children = [self.document.duplicate_as_child(container)]
            node_list.slots.extend([child] for child in children)

        found = len(node_list.slots)
        if found < len(calls) and spec:
            self._complete(node_list.slots, found, len(calls), spec)
        if spec.shuffle and not named:
            self.rng.shuffle(node_list.slots)
        log.debug(
            "Populated %d/%d slots in %s (%s)",
            found,
            len(calls),
            self.document.path(container),
            spec or "no repeat",
        )
        return node_list

    def _complete(self, slots: list[Slot], found: int, expected: int, spec: RepeatSpec) -> None:
        cursor = _Cursor(found, expected, spec)
        middle = middle_index(found, pad_left=spec.pad_left)
        for key in range(found, expected):
            if spec.padded:
                source = slots[middle][0]
                clone = self.document.duplicate(source, before=source)
                slots.insert(middle, [clone])
                continue
            source = slots[cursor.advance(key)][0]
            clone = self.document.duplicate(source, after=slots[-1][0])
            slots.append([clone])
        if spec.justify:
            self._justify(slots, found, expected, spec)

    def _justify(self, slots: list[Slot], found: int, expected: int, spec: RepeatSpec) -> None:
        """Move ``(E mod F) // 2`` elements from the head of the list to its tail.

        The relocated elements are clones of the last entries of the first
        ``F`` slots, read backwards for ``mirror`` on an odd number of cycles.
        ``once`` does not change which elements move.
        """
        remainder = expected % found
        patch_count = remainder // 2
        if not patch_count:
            return
        window = [slot[0] for slot in slots[:found]]
        if spec.wrap == "mirror" and (expected // found) % 2:
            window.reverse()
        for patch in window[found - patch_count :]:
            slots.append([self.document.duplicate(patch, after=slots[-1][0])])
        for _ in range(patch_count):
            head = slots.pop(0)
            self.document.detach(head[0])


__all__ = ["NodeList", "NodeListPopulator", "middle_index", "split_insert_suffix"]
