"""Format-preserving JSON parse tree.

A decode/encode round trip through :mod:`json` keeps key order but not the
original whitespace, escaping or number spelling. CNI configuration files
are owned by an installer and diffed by operators, so edits must touch
nothing except the value being changed.

The parser below records the source span of every value, and for object
members the raw text around the key. An edit is a splice of the original
text; every byte outside the splice is kept.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple

_WHITESPACE = json.decoder.WHITESPACE
_SCALAR_DECODER = json.JSONDecoder()
_scanstring = json.decoder.scanstring


@dataclass
class Node:
    """A JSON value occupying ``text[start:end]``."""

    start: int
    end: int


@dataclass
class ScalarNode(Node):
    value: Any = None


@dataclass
class ArrayNode(Node):
    items: List[Node] = field(default_factory=list)


@dataclass
class Member:
    """One ``"key": value`` pair inside an object.

    Attributes
    ----------
    key:
        The decoded key.
    key_start:
        Offset of the opening quote of the key.
    leading:
        Raw text between the preceding ``{`` or ``,`` and the key.
    separator:
        Raw text between the end of the key and the start of the value,
        colon included.
    value:
        The member value.
    """

    key: str
    key_start: int
    leading: str
    separator: str
    value: Node


@dataclass
class ObjectNode(Node):
    members: List[Member] = field(default_factory=list)

    def member(self, key: str) -> Optional[Member]:
        # Duplicate keys resolve to the last occurrence, like json.loads.
        found = None
        for member in self.members:
            if member.key == key:
                found = member
        return found

    def get(self, key: str) -> Optional[Node]:
        member = self.member(key)
        return member.value if member is not None else None


class _Parser:
    def __init__(self, text: str) -> None:
        self._text = text

    def parse(self) -> Node:
        node, end = self._value(self._skip(0))
        end = self._skip(end)
        if end != len(self._text):
            raise json.JSONDecodeError("Extra data", self._text, end)
        return node

    def _skip(self, idx: int) -> int:
        return _WHITESPACE.match(self._text, idx).end()

    def _fail(self, message: str, idx: int) -> json.JSONDecodeError:
        return json.JSONDecodeError(message, self._text, idx)

    def _value(self, idx: int) -> Tuple[Node, int]:
        char = self._text[idx:idx + 1]
        if char == "{":
            return self._object(idx)
        if char == "[":
            return self._array(idx)
        if char == '"':
            value, end = _scanstring(self._text, idx + 1)
            return ScalarNode(idx, end, value), end
        if not char:
            raise self._fail("Expecting value", idx)
        value, end = _SCALAR_DECODER.raw_decode(self._text, idx)
        return ScalarNode(idx, end, value), end

    def _object(self, start: int) -> Tuple[ObjectNode, int]:
        node = ObjectNode(start, start)
        idx = start + 1
        pos = self._skip(idx)
        if self._text[pos:pos + 1] == "}":
            node.end = pos + 1
            return node, node.end

        while True:
            pos = self._skip(idx)
            if self._text[pos:pos + 1] != '"':
                raise self._fail(
                    "Expecting property name enclosed in double quotes", pos
                )
            key, key_end = _scanstring(self._text, pos + 1)
            colon = self._skip(key_end)
            if self._text[colon:colon + 1] != ":":
                raise self._fail("Expecting ':' delimiter", colon)
            value_start = self._skip(colon + 1)
            value, value_end = self._value(value_start)
            node.members.append(
                Member(
                    key=key,
                    key_start=pos,
                    leading=self._text[idx:pos],
                    separator=self._text[key_end:value_start],
                    value=value,
                )
            )

            pos = self._skip(value_end)
            char = self._text[pos:pos + 1]
            if char == "}":
                node.end = pos + 1
                return node, node.end
            if char != ",":
                raise self._fail("Expecting ',' delimiter", pos)
            idx = pos + 1

    def _array(self, start: int) -> Tuple[ArrayNode, int]:
        node = ArrayNode(start, start)
        pos = self._skip(start + 1)
        if self._text[pos:pos + 1] == "]":
            node.end = pos + 1
            return node, node.end

        while True:
            item, item_end = self._value(pos)
            node.items.append(item)
            pos = self._skip(item_end)
            char = self._text[pos:pos + 1]
            if char == "]":
                node.end = pos + 1
                return node, node.end
            if char != ",":
                raise self._fail("Expecting ',' delimiter", pos)
            pos = self._skip(pos + 1)


class Document:
    """Parsed JSON text that can be edited without reformatting.

    Raises :class:`json.JSONDecodeError` when ``text`` is not valid JSON.
    """

    def __init__(self, text: str) -> None:
        self.text = text
        self.root = _Parser(text).parse()

    def raw(self, node: Node) -> str:
        return self.text[node.start:node.end]

    def set_member(self, obj: ObjectNode, key: str, value: Any) -> "Document":
        """Return a new document with ``obj[key]`` set to ``value``.

        An existing member keeps its position and only its value is replaced.
        A new member borrows the leading whitespace and colon spacing of a
        neighbour and goes before the first key that sorts after ``key``, so
        key-sorted objects stay sorted; otherwise it is appended.
        """

        encoded = json.dumps(value)
        existing = obj.member(key)
        if existing is not None:
            current = existing.value
            if isinstance(current, ScalarNode) and self.raw(current) == encoded:
                return self
            return self._splice(current.start, current.end, encoded)

        encoded_key = json.dumps(key)
        if not obj.members:
            return self._splice(obj.start + 1, obj.start + 1, f"{encoded_key}:{encoded}")

        following = next((m for m in obj.members if m.key > key), None)
        if following is not None:
            insertion = (
                f"{encoded_key}{following.separator}{encoded},{following.leading}"
            )
            return self._splice(following.key_start, following.key_start, insertion)

        last = obj.members[-1]
        insertion = f",{last.leading}{encoded_key}{last.separator}{encoded}"
        return self._splice(last.value.end, last.value.end, insertion)

    def _splice(self, start: int, end: int, replacement: str) -> "Document":
        return Document(self.text[:start] + replacement + self.text[end:])
