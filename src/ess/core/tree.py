"""Minimal tree-of-nodes view over XML documents.

ElementTree folds text into ``.text`` and ``.tail``; this module exposes the
DOM-like sibling order instead, with typed element and text nodes, so lookups
such as "first child named X whose attribute Y equals Z" can be written as
plain functions that do not depend on a particular XML library.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum


class NodeKind(str, Enum):
    ELEMENT = "element"
    TEXT = "text"


@dataclass(frozen=True)
class Node:
    """A node in a document tree.

    Element nodes carry a local ``name``, ``attributes`` and ``children``.
    Text nodes carry ``value`` only.
    """

    kind: NodeKind
    name: str = ""
    attributes: dict[str, str] = field(default_factory=dict)
    children: tuple[Node, ...] = ()
    value: str = ""

    @property
    def is_element(self) -> bool:
        return self.kind is NodeKind.ELEMENT

    @property
    def is_text(self) -> bool:
        return self.kind is NodeKind.TEXT

    @property
    def first_child(self) -> Node | None:
        return self.children[0] if self.children else None


def element(name: str, attributes: dict[str, str] | None = None, *children: Node) -> Node:
    return Node(NodeKind.ELEMENT, name=name, attributes=dict(attributes or {}), children=tuple(children))


def text(value: str) -> Node:
    return Node(NodeKind.TEXT, value=value)


def local_name(tag: str) -> str:
    """Strip a ``{namespace}`` prefix from an ElementTree tag."""
    return tag.rsplit("}", 1)[-1] if tag.startswith("{") else tag


def from_etree(elem: ET.Element, depth: int | None = None) -> Node:
    """Convert an ElementTree element (and its subtree) to a :class:`Node`.

    Attribute names are reduced to their local names. Comments and
    processing instructions are skipped. ``depth`` limits how many levels
    below ``elem`` are expanded; elements on the last level keep only their
    leading text. The walk is iterative, so document depth is not bounded by
    the interpreter's recursion limit.

    Example:
        >>> doc = ET.fromstring('<record><controlfield tag="001">7</controlfield></record>')
        >>> from_etree(doc, depth=2).first_child.first_child.value
        '7'
    """
    frames: list[tuple[ET.Element, list[Node], Iterator[ET.Element]]] = [_open(elem, 0, depth)]
    while True:
        current, children, pending = frames[-1]
        child = next(pending, None)
        if child is not None:
            if isinstance(child.tag, str):
                frames.append(_open(child, len(frames), depth))
            elif child.tail:
                children.append(text(child.tail))
            continue

        frames.pop()
        attributes = {local_name(k): v for k, v in current.attrib.items()}
        node = Node(NodeKind.ELEMENT, name=local_name(current.tag), attributes=attributes, children=tuple(children))
        if not frames:
            return node
        siblings = frames[-1][1]
        siblings.append(node)
        if current.tail:
            siblings.append(text(current.tail))


def _open(elem: ET.Element, level: int, depth: int | None) -> tuple[ET.Element, list[Node], Iterator[ET.Element]]:
    children = [text(elem.text)] if elem.text else []
    pending: Iterator[ET.Element] = iter(elem) if depth is None or level < depth else iter(())
    return elem, children, pending


def find_first_child(node: Node, name: str, attribute: str, value: str) -> Node | None:
    """Return the first direct child element called ``name`` with ``attribute == value``.

    Children are scanned in document order and the first match wins; later
    matches are never considered.
    """
    for child in node.children:
        if child.is_element and child.name == name and child.attributes.get(attribute) == value:
            return child
    return None
