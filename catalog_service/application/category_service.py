"""Category management.

Categories form a tree. A category cannot be deleted while a product or
a subcategory points at it.
"""

from typing import Any

import structlog

from catalog_service.catalog.models import Category
from catalog_service.catalog.repository import CategoryRepository
from catalog_service.catalog.taxonomy import build_tree
from catalog_service.domain.exceptions import CategoryInUseError, CategoryNotFoundError, ValidationError
from catalog_service.domain.validators import CATEGORY_NAME, check_length, check_positive_int
from catalog_service.domain.value_objects import ABSENT, is_present
from catalog_service.infrastructure.cache import KEY_PREFIX, CacheService
from catalog_service.infrastructure.database import Database

logger = structlog.get_logger()


class CategoryService:
    """Service for category reads and admin writes."""

    def __init__(self, database: Database, cache: CacheService) -> None:
        self.database = database
        self.cache = cache

    async def list_tree(self) -> list[dict[str, Any]]:
        """Get every category as a forest ordered by name."""
        async with self.database.read_session() as session:
            categories = await CategoryRepository(session).list_all()
            nodes = build_tree(categories)
        return [node.to_dict(with_counts=False) for node in nodes]

    async def get_category(self, category_id: int) -> dict[str, Any]:
        """Get one category with its subtree.

        Raises:
            CategoryNotFoundError: If the category does not exist.
        """
        async with self.database.read_session() as session:
            pending = build_tree(await CategoryRepository(session).list_all())
        while pending:
            node = pending.pop()
            if node.id == category_id:
                return node.to_dict(with_counts=False)
            pending.extend(node.children)
        raise CategoryNotFoundError(category_id)

    async def create_category(self, name: str, parent_id: int | None = None) -> dict[str, Any]:
        """Create a category.

        Args:
            name: Category name, 2-100 characters.
            parent_id: Optional parent category.

        Returns:
            The new category node.

        Raises:
            ValidationError: If the name or parent id is invalid.
            CategoryNotFoundError: If the parent does not exist.
        """
        check_length("name", name, CATEGORY_NAME)
        if parent_id is not None:
            check_positive_int("parentId", parent_id)

        async with self.database.unit_of_work() as session:
            repository = CategoryRepository(session)
            if parent_id is not None and await repository.get(parent_id) is None:
                raise CategoryNotFoundError(parent_id)
            category = await repository.save(Category(name=name.strip(), parent_id=parent_id))
            data = {"id": category.id, "name": category.name, "parentId": category.parent_id, "children": []}

        await self._invalidate_facets()
        logger.info("Category created", category_id=data["id"], parent_id=parent_id)
        return data

    async def update_category(
        self,
        category_id: int,
        name: Any = ABSENT,
        parent_id: Any = ABSENT,
    ) -> dict[str, Any]:
        """Rename or move a category.

        A null ``parent_id`` makes the category a root. A category cannot
        move under itself or one of its descendants.

        Raises:
            ValidationError: On an empty patch, bad name or a cycle.
            CategoryNotFoundError: If the category or new parent does not exist.
        """
        if not (is_present(name) or is_present(parent_id)):
            raise ValidationError(field="body", reason="empty", message="At least one field must be provided")
        if is_present(name):
            if name is None:
                raise ValidationError(field="name", reason="null", message="name cannot be null")
            check_length("name", name, CATEGORY_NAME)
        if is_present(parent_id) and parent_id is not None:
            check_positive_int("parentId", parent_id)

        async with self.database.unit_of_work() as session:
            repository = CategoryRepository(session)
            category = await repository.get(category_id)
            if category is None:
                raise CategoryNotFoundError(category_id)

            if is_present(parent_id) and parent_id is not None:
                parents = {c.id: c.parent_id for c in await repository.list_all()}
                if parent_id not in parents:
                    raise CategoryNotFoundError(parent_id)
                ancestor: int | None = parent_id
                while ancestor is not None:
                    if ancestor == category_id:
                        raise ValidationError(
                            field="parentId",
                            reason="cycle",
                            message="A category cannot be moved under itself or its descendants",
                        )
                    ancestor = parents.get(ancestor)
            if is_present(parent_id):
                category.parent_id = parent_id
            if is_present(name):
                category.name = name.strip()
            await repository.save(category)
            data = {"id": category.id, "name": category.name, "parentId": category.parent_id}

        # Product projections embed category names
        await self.cache.delete_pattern(f"{KEY_PREFIX}:*")
        logger.info("Category updated", category_id=category_id, parent_id=data["parentId"])
        return data

    async def delete_category(self, category_id: int) -> None:
        """Delete a category nothing references.

        Raises:
            CategoryNotFoundError: If the category does not exist.
            CategoryInUseError: If a product (even soft-deleted) or a
                subcategory references it.
        """
        async with self.database.unit_of_work() as session:
            repository = CategoryRepository(session)
            category = await repository.get(category_id)
            if category is None:
                raise CategoryNotFoundError(category_id)
            if await repository.is_referenced(category_id) or await repository.has_any_product(category_id):
                raise CategoryInUseError(category_id)
            await repository.delete(category)

        await self._invalidate_facets()
        logger.info("Category deleted", category_id=category_id)

    async def _invalidate_facets(self) -> None:
        await self.cache.delete_pattern(f"{KEY_PREFIX}:seller:*:filters")
