"""Category tree assembly.

Categories are stored flat with a ``parent_id``. The tree is built in
two passes: first every category becomes a node, then each node is
attached to its parent (or kept as a root).
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any, Protocol


class CategoryRow(Protocol):
    id: int
    name: str
    parent_id: int | None


@dataclass
class CategoryNode:
    """A category with its children.

    Attributes:
        id: Category ID.
        name: Category name.
        parent_id: ID of parent category (None for root).
        product_count: Products in this category and all descendants.
        children: Child nodes ordered by name.
    """

    id: int
    name: str
    parent_id: int | None = None
    product_count: int = 0
    children: list["CategoryNode"] = field(default_factory=list)

    def to_dict(self, with_counts: bool = True) -> dict[str, Any]:
        """Convert to the JSON shape of category responses."""
        data: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "parentId": self.parent_id,
        }
        if with_counts:
            data["productCount"] = self.product_count
        data["children"] = [child.to_dict(with_counts) for child in self.children]
        return data


def build_tree(
    categories: Iterable[CategoryRow],
    counts: dict[int, int] | None = None,
) -> list[CategoryNode]:
    """Build the category forest.

    Args:
        categories: Flat category rows.
        counts: Optional direct product counts per category id. When
            given, counts roll up to ancestors and branches without
            products are pruned.

    Returns:
        Root nodes ordered by name.
    """
    nodes: dict[int, CategoryNode] = {
        c.id: CategoryNode(id=c.id, name=c.name, parent_id=c.parent_id) for c in categories
    }

    roots: list[CategoryNode] = []
    for node in nodes.values():
        parent = nodes.get(node.parent_id) if node.parent_id is not None else None
        if parent is None:
            roots.append(node)
        else:
            parent.children.append(node)

    if counts is not None:
        for root in roots:
            _roll_up(root, counts)
        roots = [r for r in roots if r.product_count > 0]
        for root in roots:
            _prune(root)

    _sort(roots)
    return roots


def _roll_up(node: CategoryNode, counts: dict[int, int]) -> int:
    node.product_count = counts.get(node.id, 0) + sum(_roll_up(c, counts) for c in node.children)
    return node.product_count


def _prune(node: CategoryNode) -> None:
    node.children = [c for c in node.children if c.product_count > 0]
    for child in node.children:
        _prune(child)


def _sort(nodes: list[CategoryNode]) -> None:
    nodes.sort(key=lambda n: (n.name.lower(), n.id))
    for node in nodes:
        _sort(node.children)
