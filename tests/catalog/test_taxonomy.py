"""Tests for category tree assembly."""

from dataclasses import dataclass

import pytest

from catalog_service.catalog.taxonomy import CategoryNode, build_tree


@dataclass
class Row:
    id: int
    name: str
    parent_id: int | None = None


@pytest.fixture
def rows() -> list[Row]:
    return [
        Row(4, "Fashion"),
        Row(2, "Smartphones", 1),
        Row(1, "Electronics"),
        Row(3, "Laptops", 1),
        Row(5, "Footwear", 4),
    ]


class TestBuildTree:
    """Tests for build_tree."""

    def test_roots_and_children_sorted_by_name(self, rows: list[Row]) -> None:
        tree = build_tree(rows)
        assert [n.name for n in tree] == ["Electronics", "Fashion"]
        assert [c.name for c in tree[0].children] == ["Laptops", "Smartphones"]

    def test_parent_listed_after_child(self) -> None:
        """Input order does not matter."""
        tree = build_tree([Row(9, "Child", 8), Row(8, "Parent")])
        assert tree[0].id == 8
        assert tree[0].children[0].id == 9

    def test_missing_parent_becomes_root(self) -> None:
        tree = build_tree([Row(2, "Orphan", 99)])
        assert [n.id for n in tree] == [2]

    def test_counts_roll_up_and_prune(self, rows: list[Row]) -> None:
        """Counts include descendants; empty branches are dropped."""
        tree = build_tree(rows, counts={2: 3, 1: 1})
        assert len(tree) == 1
        electronics = tree[0]
        assert electronics.product_count == 4
        assert [c.name for c in electronics.children] == ["Smartphones"]

    def test_empty_counts_prune_everything(self, rows: list[Row]) -> None:
        assert build_tree(rows, counts={}) == []


class TestCategoryNode:
    def test_to_dict_with_counts(self) -> None:
        node = CategoryNode(id=1, name="Electronics", product_count=2, children=[CategoryNode(id=2, name="Phones", parent_id=1)])
        data = node.to_dict()
        assert data == {
            "id": 1,
            "name": "Electronics",
            "parentId": None,
            "productCount": 2,
            "children": [{"id": 2, "name": "Phones", "parentId": 1, "productCount": 0, "children": []}],
        }

    def test_to_dict_without_counts(self) -> None:
        data = CategoryNode(id=1, name="Electronics").to_dict(with_counts=False)
        assert "productCount" not in data
