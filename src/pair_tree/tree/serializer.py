"""Nested-bracket serialization of built trees.

A leaf renders as ``(A)``; a node with children renders as ``(A<left><right>)``
where a missing child contributes nothing. ``deserialize`` reads the same
format back into ``TreeNode`` objects.
"""

from typing import Callable, Dict, List, Optional, Tuple

from pair_tree.shared import SerializationError
from pair_tree.tree.builder import TreeNode

OPEN = "("
CLOSE = ")"


def serialize_recursive(node: Optional[TreeNode]) -> str:
    """Render ``node`` by plain recursion, bounded by the recursion limit."""
    if node is None:
        return ""
    if node.is_leaf:
        return f"{OPEN}{node.value}{CLOSE}"
    return (
        f"{OPEN}{node.value}"
        f"{serialize_recursive(node.left)}{serialize_recursive(node.right)}{CLOSE}"
    )


def serialize_iterative(node: Optional[TreeNode]) -> str:
    """Render ``node`` with an explicit stack; depth is unbounded."""
    if node is None:
        return ""

    parts: List[str] = []
    # Entries are either a node to open or a literal closing bracket
    stack: List[object] = [node]
    while stack:
        item = stack.pop()
        if isinstance(item, str):
            parts.append(CLOSE)
            continue
        current: TreeNode = item  # type: ignore[assignment]
        parts.append(f"{OPEN}{current.value}")
        stack.append(CLOSE)
        stack.extend(reversed(current.children))
    return "".join(parts)


_STRATEGIES: Dict[str, Callable[[Optional[TreeNode]], str]] = {
    "recursive": serialize_recursive,
    "iterative": serialize_iterative,
}


def serialize(node: Optional[TreeNode], strategy: str = "recursive") -> str:
    """Serialize the tree rooted at ``node``.

    Args:
        node: Root of the tree, or None for an empty tree
        strategy: ``recursive`` or ``iterative``; both give identical text

    Returns:
        Nested-bracket text, empty when ``node`` is None
    """
    try:
        renderer = _STRATEGIES[strategy]
    except KeyError:
        raise ValueError(f"Unknown serialization strategy: {strategy!r}") from None
    return renderer(node)


def deserialize(text: str) -> Optional[TreeNode]:
    """Parse nested-bracket text back into a tree.

    Children are placed into the left slot first, then the right slot, in
    the order they appear. Empty text gives None.

    Raises:
        SerializationError: on unbalanced brackets, missing values, more than
            two children, or trailing text after the root
    """
    if not text:
        return None

    root: Optional[TreeNode] = None
    stack: List[TreeNode] = []
    offset = 0

    while offset < len(text):
        char = text[offset]

        if char == OPEN:
            if offset + 1 >= len(text) or text[offset + 1] in (OPEN, CLOSE):
                raise SerializationError("Missing node value", offset=offset)
            if root is not None and not stack:
                raise SerializationError("Text continues after root", offset=offset)

            node = TreeNode(text[offset + 1])
            if stack:
                parent = stack[-1]
                if parent.right is not None:
                    raise SerializationError(
                        f"Node {parent.value!r} has more than two children",
                        offset=offset,
                    )
                if parent.left is None:
                    parent.left = node
                else:
                    parent.right = node
            else:
                root = node
            stack.append(node)
            offset += 2

        elif char == CLOSE:
            if not stack:
                raise SerializationError("Unbalanced closing bracket", offset=offset)
            stack.pop()
            offset += 1

        else:
            raise SerializationError(f"Unexpected character {char!r}", offset=offset)

    if stack:
        raise SerializationError("Unbalanced opening bracket", offset=len(text))
    return root


def count_nodes(text: str) -> int:
    """Number of bracket pairs, i.e. nodes, in a serialization."""
    return text.count(OPEN)


def shape_signature(node: Optional[TreeNode]) -> Tuple:
    """Hashable description of a tree's values and slot layout."""
    if node is None:
        return ()
    return (node.value, shape_signature(node.left), shape_signature(node.right))
