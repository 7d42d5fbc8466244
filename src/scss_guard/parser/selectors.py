"""Selector parsing, classification and specificity."""

from typing import Callable, List, Optional, Tuple

from .lexer import WHITESPACE_CHARS, ScanError, iter_top_level, skip_group, skip_interpolation
from .nodes import Position, Selector, SimpleSelector

COMBINATORS = ">+~"

# Pseudo-classes whose argument is itself a selector list
SELECTOR_PSEUDOS = {"not", "is", "has", "matches", "where", "any", "-moz-any", "-webkit-any"}

# CSS2 pseudo-elements that may still be written with a single colon
LEGACY_PSEUDO_ELEMENTS = {"before", "after", "first-line", "first-letter"}


class SelectorSyntaxError(ValueError):
    """Invalid selector; ``offset`` is relative to the text being parsed."""

    def __init__(self, offset: int, reason: str):
        super().__init__(reason)
        self.offset = offset
        self.reason = reason


def _is_name_char(char: str) -> bool:
    return char.isalnum() or char in "-_" or ord(char) >= 0x80


def _scan_name(text: str, start: int) -> int:
    """Return the end of an identifier (with escapes and interpolation) at ``start``."""
    i = start
    while i < len(text):
        char = text[i]
        if _is_name_char(char):
            i += 1
        elif char == "\\" and i + 1 < len(text):
            i += 2
        elif char == "#" and text.startswith("{", i + 1):
            try:
                i = skip_interpolation(text, i)
            except ScanError as e:
                raise SelectorSyntaxError(e.offset, e.reason)
        else:
            break
    return i


def split_selector_list(text: str) -> List[Tuple[int, str]]:
    """Split a selector group on top-level commas into ``(offset, selector)`` pairs."""
    pieces: List[Tuple[int, str]] = []
    start = 0
    commas = [index for index, char in iter_top_level(text) if char == ","]
    for end in commas + [len(text)]:
        raw = text[start:end]
        stripped = raw.lstrip()
        offset = start + (len(raw) - len(stripped))
        stripped = stripped.rstrip()
        if not stripped:
            raise SelectorSyntaxError(offset, "empty selector in selector list")
        pieces.append((offset, stripped))
        start = end + 1
    return pieces


def normalize_selector(text: str) -> str:
    """Canonical spelling: single spaces, and a space either side of combinators."""
    items: List[Tuple[str, str]] = []
    last = 0
    gap: Optional[str] = None
    for index, char in iter_top_level(text):
        if char in WHITESPACE_CHARS or char in COMBINATORS:
            if gap is None:
                if text[last:index]:
                    items.append(("compound", text[last:index]))
                gap = " "
            if char in COMBINATORS:
                gap = char
            last = index + 1
        elif gap is not None:
            items.append(("gap", gap))
            gap = None
    tail = text[last:]
    if gap is not None:
        items.append(("gap", gap))
    if tail:
        items.append(("compound", tail))

    out: List[str] = []
    for position, (kind, value) in enumerate(items):
        if kind == "compound":
            out.append(value)
            continue
        before = any(k == "compound" for k, _ in items[:position])
        after = any(k == "compound" for k, _ in items[position + 1 :])
        if value == " ":
            if before and after:
                out.append(" ")
        else:
            out.append((" " if before else "") + value + (" " if after else ""))
    return "".join(out)


def parse_selector(text: str, offset: int = 0) -> List[SimpleSelector]:
    """Break one complex selector into simple selectors.

    ``offset`` is added to every recorded part offset, so nested pseudo
    arguments report positions relative to the outer selector.
    """
    parts: List[SimpleSelector] = []
    compound = 0
    i = 0
    length = len(text)

    def add(kind: str, name: str, at: int) -> None:
        parts.append(SimpleSelector(kind=kind, name=name, offset=offset + at, compound=compound))

    while i < length:
        char = text[i]
        if char in WHITESPACE_CHARS or char in COMBINATORS:
            while i < length and (text[i] in WHITESPACE_CHARS or text[i] in COMBINATORS):
                i += 1
            if parts:
                compound += 1
            continue

        if char == "." or char == "%":
            end = _scan_name(text, i + 1)
            if end == i + 1:
                what = "class" if char == "." else "placeholder"
                raise SelectorSyntaxError(offset + i, f"expected {what} name after '{char}'")
            add("class" if char == "." else "placeholder", text[i + 1 : end], i)
            i = end
        elif char == "#":
            if text.startswith("{", i + 1):
                end = _scan_name(text, i)
                add("interpolation", text[i:end], i)
            else:
                end = _scan_name(text, i + 1)
                if end == i + 1:
                    raise SelectorSyntaxError(offset + i, "expected id name after '#'")
                add("id", text[i + 1 : end], i)
            i = end
        elif char == "&":
            end = _scan_name(text, i + 1)
            add("parent", text[i + 1 : end], i)
            i = end
        elif char == "*":
            add("universal", "*", i)
            i += 1
        elif char == "[":
            try:
                end = skip_group(text, i)
            except ScanError as e:
                raise SelectorSyntaxError(offset + e.offset, e.reason)
            inner = text[i + 1 : end - 1].strip()
            name = _scan_name(inner, 0)
            if name == 0:
                raise SelectorSyntaxError(offset + i, "expected attribute name after '['")
            add("attribute", inner[:name], i)
            i = end
        elif char == ":":
            i = _parse_pseudo(text, i, offset, compound, parts)
        elif char.isdigit():
            end = i
            while end < length and (text[end].isdigit() or text[end] in ".%"):
                end += 1
            add("keyframe", text[i:end], i)
            i = end
        elif _is_name_char(char) or char == "\\" or char == "|":
            end = _scan_name(text, i)
            if end == i:
                end = i + 1
            add("element", text[i:end], i)
            i = end
        elif char in "\"'":
            raise SelectorSyntaxError(offset + i, "unexpected string in selector")
        else:
            raise SelectorSyntaxError(offset + i, f"unexpected character '{char}' in selector")

    return parts


def _parse_pseudo(
    text: str, start: int, offset: int, compound: int, parts: List[SimpleSelector]
) -> int:
    double = text.startswith("::", start)
    name_start = start + (2 if double else 1)
    end = _scan_name(text, name_start)
    if end == name_start:
        raise SelectorSyntaxError(offset + start, "expected pseudo-class name after ':'")
    name = text[name_start:end]
    is_element = double or name.lower() in LEGACY_PSEUDO_ELEMENTS
    parts.append(
        SimpleSelector(
            kind="pseudo-element" if is_element else "pseudo",
            name=name,
            offset=offset + start,
            compound=compound,
        )
    )
    if end < len(text) and text[end] == "(":
        try:
            close = skip_group(text, end)
        except ScanError as e:
            raise SelectorSyntaxError(offset + e.offset, e.reason)
        if name.lower() in SELECTOR_PSEUDOS:
            argument = text[end + 1 : close - 1]
            for piece_offset, piece in split_selector_list(argument):
                for part in parse_selector(piece, offset + end + 1 + piece_offset):
                    parts.append(
                        SimpleSelector(
                            kind=part.kind,
                            name=part.name,
                            offset=part.offset,
                            compound=compound,
                        )
                    )
        end = close
    return end


def calculate_specificity(parts: List[SimpleSelector]) -> Tuple[int, int, int]:
    """Standard CSS specificity ``(ids, classes/attributes/pseudo-classes, types)``.

    Parts inside ``:not()``/``:is()``/``:has()`` are already flattened into
    ``parts`` and count as if written directly; ``:where()`` arguments still
    count here, which overstates them slightly.
    """
    ids = sum(1 for part in parts if part.kind == "id")
    classes = sum(
        1 for part in parts
        if part.kind in ("class", "placeholder", "attribute")
        or (part.kind == "pseudo" and part.name.lower() not in SELECTOR_PSEUDOS)
    )
    types = sum(1 for part in parts if part.kind in ("element", "pseudo-element"))
    return (ids, classes, types)


def parse_selector_list(
    text: str,
    base_offset: int = 0,
    locate: Optional[Callable[[int], Position]] = None,
) -> List[Selector]:
    """Parse a comma-separated selector group.

    Args:
        text: The selector group as written (comments blanked out)
        base_offset: Source offset of ``text[0]``
        locate: Maps a source offset to a ``Position``

    Raises:
        SelectorSyntaxError: with an offset relative to ``text``
    """
    if locate is None:
        locate = lambda at: Position(line=1, column=at + 1, offset=at)  # noqa: E731

    selectors: List[Selector] = []
    for piece_offset, piece in split_selector_list(text):
        try:
            parts = parse_selector(piece)
        except SelectorSyntaxError as e:
            raise SelectorSyntaxError(piece_offset + e.offset, e.reason)
        selectors.append(
            Selector(
                text=normalize_selector(piece),
                position=locate(base_offset + piece_offset),
                parts=parts,
                specificity=calculate_specificity(parts),
            )
        )
    return selectors
