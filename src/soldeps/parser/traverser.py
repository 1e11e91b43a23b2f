"""
Generic traversal over Solidity syntax trees.

Nodes are plain mappings tagged by `type` (the shape produced by
@solidity-parser/parser and its JSON dumps). Known kinds descend through
NODE_CHILD_SLOTS; unknown kinds fall back to scanning every property.
"""

from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Tuple

from soldeps.logging_config import logger
from soldeps.schemas import SourceLocation, SourcePosition
from .config import NODE_CHILD_SLOTS, LEAF_NODE_KINDS, FUNCTION_NODE_KINDS

Node = Mapping[str, Any]
VisitorCallback = Callable[[Node, Optional[Node]], Any]
Visitor = Dict[str, VisitorCallback]


def node_kind(value: Any) -> Optional[str]:
    """Return the node tag of a value, or None if it is not node-shaped."""
    if not isinstance(value, Mapping):
        return None
    tag = value.get("type")
    if isinstance(tag, str):
        return tag
    tag = value.get("kind")
    if isinstance(tag, str):
        return tag
    return None


def location_from_node(node: Node) -> Optional[SourceLocation]:
    """Build a SourceLocation from a node's `loc`, if it carries one."""
    loc = node.get("loc")
    if not isinstance(loc, Mapping):
        return None
    try:
        return SourceLocation(
            start=SourcePosition(line=loc["start"]["line"], column=loc["start"]["column"]),
            end=SourcePosition(line=loc["end"]["line"], column=loc["end"]["column"]),
        )
    except (KeyError, TypeError):
        return None


class ASTTraverser:
    """
    Walks syntax trees and answers structural queries over them.
    """

    def traverse(self, node: Node, visitor: Visitor, parent: Optional[Node] = None) -> None:
        """
        Call visitor callbacks for matching node kinds, depth first.

        A callback returning a truthy value stops descent into that node's
        subtree; siblings are still visited.
        """
        kind = node_kind(node)
        if kind is None:
            return

        callback = visitor.get(kind)
        if callback is not None and callback(node, parent):
            return

        for child in self._children(node, kind):
            self.traverse(child, visitor, node)

    def iter_nodes(self, node: Node, parent: Optional[Node] = None) -> Iterator[Tuple[Node, Optional[Node]]]:
        """Yield (node, parent) pairs in pre-order."""
        if node_kind(node) is None:
            return
        stack: List[Tuple[Node, Optional[Node]]] = [(node, parent)]
        while stack:
            current, current_parent = stack.pop()
            yield current, current_parent
            children = list(self._children(current, node_kind(current)))
            for child in reversed(children):
                stack.append((child, current))

    def _children(self, node: Node, kind: str) -> Iterator[Node]:
        if kind in LEAF_NODE_KINDS:
            return

        slots = NODE_CHILD_SLOTS.get(kind)
        if slots is not None:
            for slot in slots:
                yield from self._nodes_in(node.get(slot))
            return

        # Unknown kind: scan every property for node-shaped values
        for key, value in node.items():
            if key in ("loc", "range"):
                continue
            yield from self._nodes_in(value)

    @staticmethod
    def _nodes_in(value: Any) -> Iterator[Node]:
        if isinstance(value, list):
            for item in value:
                if node_kind(item) is not None:
                    yield item
        elif node_kind(value) is not None:
            yield value

    def find_all(self, node: Node, kind: str) -> List[Node]:
        """Find all nodes of a specific kind in the tree."""
        results: List[Node] = []

        def collect(n: Node, _parent: Optional[Node]) -> None:
            results.append(n)

        self.traverse(node, {kind: collect})
        return results

    def find_first(self, node: Node, kind: str) -> Optional[Node]:
        """Find the first node of a specific kind in pre-order, stopping the walk there."""
        for current, _parent in self.iter_nodes(node):
            if node_kind(current) == kind:
                return current
        return None

    def find_enclosing(self, node: Node, line: int, column: int) -> Optional[Node]:
        """
        Find the innermost function definition whose span contains a position.

        Args:
            node: Root of the tree (usually a SourceUnit)
            line: 1-indexed line
            column: 0-indexed column

        Returns:
            The function definition node with the smallest (line span, column span),
            or None if no function contains the position.
        """
        best: Optional[Node] = None
        best_extent: Optional[Tuple[int, int]] = None

        def check(n: Node, _parent: Optional[Node]) -> None:
            nonlocal best, best_extent
            location = location_from_node(n)
            if location is None or not location.contains(line, column):
                return
            extent = location.extent()
            if best_extent is None or extent < best_extent:
                best, best_extent = n, extent

        self.traverse(node, {kind: check for kind in FUNCTION_NODE_KINDS})

        if best is None:
            logger.debug(f"No function encloses line {line}, column {column}")
        return best
