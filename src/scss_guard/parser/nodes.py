"""Syntax tree for SCSS stylesheets.

Every node records where it starts and a little layout trivia (blank lines
before it, whether it opens its line, the indentation in front of it). The
rule engine checks layout from this trivia; the formatter ignores it and
re-emits canonical text.
"""

from dataclasses import dataclass, field
from functools import cached_property
from typing import Iterator, List, Optional, Tuple, Union


@dataclass(frozen=True)
class Position:
    """A 1-based line/column location plus the 0-based source offset."""

    line: int
    column: int
    offset: int


@dataclass(frozen=True)
class SimpleSelector:
    """One simple selector inside a complex selector.

    ``kind`` is one of ``class``, ``id``, ``attribute``, ``element``,
    ``pseudo``, ``pseudo-element``, ``placeholder``, ``parent``,
    ``universal``, ``interpolation`` or ``keyframe``. ``offset`` is relative
    to the start of the selector text in the source.
    """

    kind: str
    name: str
    offset: int
    compound: int = 0


@dataclass
class Selector:
    """A complex selector from a rule declaration's selector list."""

    text: str
    position: Position
    parts: List[SimpleSelector] = field(default_factory=list)
    specificity: Tuple[int, int, int] = (0, 0, 0)

    @property
    def kind(self) -> str:
        """Classify by the key (rightmost) compound: id, class, attribute, pseudo or element."""
        if not self.parts:
            return "element"
        last = max(part.compound for part in self.parts)
        kinds = {part.kind for part in self.parts if part.compound == last}
        if "id" in kinds:
            return "id"
        if kinds & {"class", "placeholder"}:
            return "class"
        if "attribute" in kinds:
            return "attribute"
        if kinds & {"pseudo", "pseudo-element"}:
            return "pseudo"
        return "element"

    def parts_of_kind(self, *kinds: str) -> List[SimpleSelector]:
        return [part for part in self.parts if part.kind in kinds]

    def __str__(self) -> str:
        return self.text


@dataclass(kw_only=True)
class Node:
    """Common base for everything that can appear in a block."""

    position: Position
    depth: int = 0
    blank_lines_before: int = 0
    first_on_line: bool = True
    indent: str = ""


@dataclass(kw_only=True)
class Block:
    """A ``{ ... }`` body together with the layout of its braces."""

    open_brace: Position
    space_before: str
    close_brace: Position
    close_on_own_line: bool
    close_indent: str
    children: List[Node] = field(default_factory=list)


@dataclass(kw_only=True)
class Comment(Node):
    text: str
    style: str  # "line" or "block"
    trailing: bool = False


@dataclass(kw_only=True)
class Assignment(Node):
    """Shared shape of ``name: value`` statements (properties and variables)."""

    name: str
    value: str
    colon: Position
    space_before_colon: bool = False
    space_after_colon: str = " "
    terminated: bool = True


@dataclass(kw_only=True)
class Property(Assignment):
    index: int = 0


@dataclass(kw_only=True)
class Variable(Assignment):
    """A ``$name: value`` declaration. ``name`` excludes the ``$``."""

    flags: List[str] = field(default_factory=list)

    @property
    def scope(self) -> str:
        return "file-local" if self.name.startswith("_") else "global"


@dataclass(kw_only=True)
class Include(Node):
    name: str
    arguments: Optional[str] = None
    block: Optional[Block] = None
    terminated: bool = True


@dataclass(kw_only=True)
class Extend(Node):
    target: str
    terminated: bool = True


@dataclass(kw_only=True)
class AtRule(Node):
    """A directive such as ``@media`` or ``@if``.

    ``selectors`` is only filled for ``@at-root <selector> { ... }``, which
    declares a rule of its own.
    """

    name: str
    prelude: str = ""
    block: Optional[Block] = None
    terminated: bool = True
    selectors: List[Selector] = field(default_factory=list)

    @property
    def is_at_root(self) -> bool:
        return self.name == "at-root" and not self.prelude.startswith("(")


@dataclass(kw_only=True)
class RuleDeclaration(Node):
    selectors: List[Selector]
    block: Block


@dataclass(kw_only=True)
class NestedProperty(Node):
    """``font: { family: x; }`` or ``margin: 0 { top: 1px; }``: a namespace for sub-properties."""

    name: str
    value: str = ""
    block: Block


Statement = Union[Property, Variable, Include, Extend, AtRule]


@dataclass
class StyleSheet:
    """Root of a parsed file. Owns every node below it."""

    filename: str
    source: str
    children: List[Node] = field(default_factory=list)

    @cached_property
    def lines(self) -> List[str]:
        return self.source.split("\n")

    def walk(self) -> Iterator["NodeContext"]:
        return iter_nodes(self.children)


@dataclass(frozen=True)
class NodeContext:
    """A node seen during a walk, with its chain of enclosing nodes."""

    node: Node
    parents: Tuple[Node, ...] = ()
    previous: Optional[Node] = None
    next: Optional[Node] = None

    @property
    def parent(self) -> Optional[Node]:
        return self.parents[-1] if self.parents else None

    @property
    def rule_depth(self) -> int:
        """Selector nesting level: a top-level rule declaration is at depth 1.

        ``@at-root`` starts counting again from the root.
        """
        depth = 0
        for node in self.parents + (self.node,):
            if isinstance(node, RuleDeclaration):
                depth += 1
            elif isinstance(node, AtRule) and node.is_at_root:
                depth = 1 if node.selectors else 0
        return depth


def block_of(node: Node) -> Optional[Block]:
    return getattr(node, "block", None)


def iter_nodes(children: List[Node], parents: Tuple[Node, ...] = ()) -> Iterator[NodeContext]:
    """Depth-first, source-order walk over a list of nodes and their blocks."""
    for i, child in enumerate(children):
        previous = children[i - 1] if i > 0 else None
        following = children[i + 1] if i + 1 < len(children) else None
        yield NodeContext(child, parents, previous, following)
        block = block_of(child)
        if block is not None:
            yield from iter_nodes(block.children, parents + (child,))


def iter_blocks(sheet: StyleSheet) -> Iterator[Tuple[Optional[Node], List[Node]]]:
    """Yield ``(owner, children)`` for the root and for every block in the tree."""
    yield None, sheet.children
    for context in sheet.walk():
        block = block_of(context.node)
        if block is not None:
            yield context.node, block.children


def order_group(node: Node) -> int:
    """Canonical ordering bucket: properties (0), includes (1), nested blocks (2)."""
    if isinstance(node, Include):
        return 1
    if isinstance(node, AtRule) and node.name == "content":
        return 1
    if isinstance(node, RuleDeclaration):
        return 2
    if isinstance(node, AtRule) and node.block is not None:
        return 2
    return 0


def is_block_node(node: Optional[Node]) -> bool:
    return node is not None and not isinstance(node, Comment) and block_of(node) is not None


@dataclass
class Unit:
    """A declaration together with the comments that belong to it.

    Leading comments sit directly above the node (no blank line between);
    trailing comments share the node's last line. A unit may have no node:
    a free-standing comment group, or a comment trailing a block's ``{``.
    """

    comments: List[Comment] = field(default_factory=list)
    node: Optional[Node] = None
    trailing: List[Comment] = field(default_factory=list)

    @property
    def first(self) -> Node:
        if self.comments:
            return self.comments[0]
        if self.node is not None:
            return self.node
        return self.trailing[0]


def group_units(children: List[Node]) -> List[Unit]:
    """Group a block's children into units of comments plus the node they document."""
    units: List[Unit] = []
    pending: List[Comment] = []

    for child in children:
        if isinstance(child, Comment) and child.trailing:
            if pending:
                pending.append(child)
            elif units:
                units[-1].trailing.append(child)
            else:
                units.append(Unit(trailing=[child]))
            continue

        if pending and child.blank_lines_before > 0:
            units.append(Unit(comments=pending))
            pending = []

        if isinstance(child, Comment):
            pending.append(child)
        else:
            units.append(Unit(comments=pending, node=child))
            pending = []

    if pending:
        units.append(Unit(comments=pending))
    return units
