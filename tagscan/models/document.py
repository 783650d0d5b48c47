"""Structured document model: tagged union over JSON-shaped values.

Page-builder data arrives as JSON. It is decoded once into a ``Node`` tree so
traversal dispatches on ``Node.kind`` instead of probing Python types at every
level.

    NULL | BOOLEAN | NUMBER | STRING | LIST[Node] | MAP[(str, Node)]

MAP keeps its entries as ordered ``(key, Node)`` pairs in source order.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from json.decoder import scanstring
from json.scanner import NUMBER_RE
from typing import Any, Iterator, Optional, Union

from tagscan.constants import MAX_DOCUMENT_NESTING
from tagscan.utils.logger import get_logger

logger = get_logger(__name__)


class NodeKind(str, Enum):
    NULL = "null"
    BOOLEAN = "boolean"
    NUMBER = "number"
    STRING = "string"
    LIST = "list"
    MAP = "map"


@dataclass(frozen=True)
class Node:
    """One value in a structured document.

    ``value`` by kind:
        NULL    -> None
        BOOLEAN -> bool
        NUMBER  -> int | float
        STRING  -> str
        LIST    -> tuple[Node, ...]
        MAP     -> tuple[tuple[str, Node], ...]
    """

    kind: NodeKind
    value: Any = None

    @property
    def is_container(self) -> bool:
        return self.kind in (NodeKind.LIST, NodeKind.MAP)

    def children(self) -> Iterator[tuple[Union[str, int], "Node"]]:
        """Yield ``(key, child)`` pairs; list children are keyed by index."""
        if self.kind is NodeKind.MAP:
            yield from self.value
        elif self.kind is NodeKind.LIST:
            yield from enumerate(self.value)

    @classmethod
    def from_python(cls, obj: Any, max_nesting: int = MAX_DOCUMENT_NESTING) -> "Node":
        """Build a Node tree from a decoded JSON value.

        Dict keys are stringified as JSON would. Tuples are treated as lists.
        Containers nested deeper than ``max_nesting`` become NULL nodes; the
        build uses an explicit stack, so arbitrarily deep input never hits
        the interpreter recursion limit.

        Raises:
            TypeError: If ``obj`` holds a value with no JSON equivalent.
        """
        root = _leaf_node(obj)
        if root is not None:
            return root

        stack = [_open_frame(obj)]
        cut = 0
        while True:
            frame = stack[-1]
            entry = next(frame.items, None)
            if entry is None:
                stack.pop()
                node = cls(frame.kind, tuple(frame.built))
                if not stack:
                    break
                stack[-1].attach(node)
                continue

            key, value = entry
            child = _leaf_node(value)
            if child is None:
                if len(stack) >= max_nesting:
                    cut += 1
                    child = cls(NodeKind.NULL)
                else:
                    frame.pending_key = key
                    stack.append(_open_frame(value))
                    continue
            frame.pending_key = key
            frame.attach(child)

        if cut:
            logger.debug(
                "Document nesting limit reached, branches replaced by null",
                branches=cut,
                max_nesting=max_nesting,
            )
        return node

    def to_python(self) -> Any:
        if not self.is_container:
            return self.value
        root: Any = [] if self.kind is NodeKind.LIST else {}
        pending = [(self, root)]
        while pending:
            node, target = pending.pop()
            for key, child in node.children():
                if child.is_container:
                    value: Any = [] if child.kind is NodeKind.LIST else {}
                    pending.append((child, value))
                else:
                    value = child.value
                if node.kind is NodeKind.LIST:
                    target.append(value)
                else:
                    target[key] = value
        return root

    def serialize(self) -> str:
        """Canonical compact JSON text of the whole document.

        Non-ASCII characters and ``/`` are left unescaped, so embedded markup
        such as ``</script>`` appears in the output exactly as in the source.
        """
        return json.dumps(self.to_python(), ensure_ascii=False, separators=(",", ":"))


class _Frame:
    """One open container during ``Node.from_python``."""

    __slots__ = ("kind", "items", "built", "pending_key")

    def __init__(self, kind: NodeKind, items: Iterator[tuple[Union[str, int], Any]]) -> None:
        self.kind = kind
        self.items = items
        self.built: list[Any] = []
        self.pending_key: Union[str, int, None] = None

    def attach(self, node: Node) -> None:
        if self.kind is NodeKind.LIST:
            self.built.append(node)
        else:
            self.built.append((self.pending_key, node))


def _leaf_node(obj: Any) -> Optional[Node]:
    """Node for a scalar (or an existing Node); None for list/dict values."""
    if isinstance(obj, Node):
        return obj
    if obj is None:
        return Node(NodeKind.NULL)
    if isinstance(obj, bool):
        return Node(NodeKind.BOOLEAN, obj)
    if isinstance(obj, (int, float)):
        return Node(NodeKind.NUMBER, obj)
    if isinstance(obj, str):
        return Node(NodeKind.STRING, obj)
    if isinstance(obj, (list, tuple, dict)):
        return None
    raise TypeError(f"Unsupported document value type: {type(obj).__name__}")


def _open_frame(obj: Any) -> _Frame:
    if isinstance(obj, dict):
        return _Frame(NodeKind.MAP, ((str(k), v) for k, v in obj.items()))
    return _Frame(NodeKind.LIST, enumerate(obj))


# ─── Decoding ────────────────────────────────────────────────────────────────

_WHITESPACE = " \t\n\r"

_LITERALS = (
    ("null", None),
    ("true", True),
    ("false", False),
    ("NaN", float("nan")),
    ("Infinity", float("inf")),
    ("-Infinity", float("-inf")),
)


def _skip_ws(text: str, idx: int) -> int:
    while idx < len(text) and text[idx] in _WHITESPACE:
        idx += 1
    return idx


def _read_scalar(text: str, idx: int) -> tuple[Any, int]:
    if text.startswith('"', idx):
        return scanstring(text, idx + 1)
    match = NUMBER_RE.match(text, idx)
    if match is not None:
        integer, frac, exp = match.groups()
        if frac or exp:
            return float(integer + (frac or "") + (exp or "")), match.end()
        return int(integer), match.end()
    for literal, value in _LITERALS:
        if text.startswith(literal, idx):
            return value, idx + len(literal)
    raise ValueError(f"Expecting value at char {idx}")


def _read_key(text: str, idx: int) -> tuple[str, int]:
    if not text.startswith('"', idx):
        raise ValueError(f"Expecting property name at char {idx}")
    key, idx = scanstring(text, idx + 1)
    idx = _skip_ws(text, idx)
    if not text.startswith(":", idx):
        raise ValueError(f"Expecting ':' delimiter at char {idx}")
    return key, _skip_ws(text, idx + 1)


def _decode_bounded(text: str, max_nesting: int) -> Any:
    """Decode JSON text without recursion.

    Containers nested deeper than ``max_nesting`` are still parsed (so the
    text is validated) but decode to None.

    Raises:
        ValueError: If the text is not valid JSON.
    """
    # Frame: [container or None when cut, pending key, closing char]
    stack: list[list[Any]] = []
    idx = _skip_ws(text, 0)
    value: Any = None
    have_value = False

    while True:
        if not have_value:
            opener = text[idx:idx + 1]
            if opener in ("[", "{"):
                kept = len(stack) < max_nesting and (not stack or stack[-1][0] is not None)
                closer = "]" if opener == "[" else "}"
                container: Any = ([] if opener == "[" else {}) if kept else None
                frame = [container, None, closer]
                stack.append(frame)
                idx = _skip_ws(text, idx + 1)
                if text.startswith(closer, idx):
                    stack.pop()
                    value, have_value = container, True
                    idx += 1
                elif closer == "}":
                    frame[1], idx = _read_key(text, idx)
                continue
            value, idx = _read_scalar(text, idx)
            have_value = True
            continue

        if not stack:
            if _skip_ws(text, idx) != len(text):
                raise ValueError(f"Extra data at char {idx}")
            return value

        frame = stack[-1]
        container, key, closer = frame
        if container is not None:
            if closer == "]":
                container.append(value)
            else:
                container[key] = value

        idx = _skip_ws(text, idx)
        delimiter = text[idx:idx + 1]
        if delimiter == ",":
            idx = _skip_ws(text, idx + 1)
            if closer == "}":
                frame[1], idx = _read_key(text, idx)
            have_value = False
        elif delimiter == closer:
            stack.pop()
            value = container
            idx += 1
        else:
            raise ValueError(f"Expecting ',' delimiter at char {idx}")


def parse_document(
    raw: Union[str, bytes, bytearray, None],
    max_nesting: int = MAX_DOCUMENT_NESTING,
) -> Optional[Node]:
    """Decode raw JSON text or bytes into a Node tree.

    Returns None (never raises) when the input is absent, is not valid UTF-8
    or is not valid JSON. Documents nested deeper than the C decoder allows
    are decoded again iteratively; branches past ``max_nesting`` become NULL
    nodes and the rest of the document is kept.
    """
    if raw is None:
        return None
    if isinstance(raw, (bytes, bytearray)):
        try:
            raw = bytes(raw).decode("utf-8")
        except UnicodeDecodeError as exc:
            logger.debug("Document is not valid UTF-8", error=str(exc))
            return None
    if not isinstance(raw, str):
        return None
    try:
        try:
            decoded = json.loads(raw)
        except RecursionError:
            logger.debug("Document nests past the decoder limit, decoding iteratively")
            decoded = _decode_bounded(raw, max_nesting)
    except ValueError as exc:
        logger.debug("Document is not valid JSON", error=type(exc).__name__)
        return None
    return Node.from_python(decoded, max_nesting)
