"""
Category hierarchy maintenance.

Categories form a forest at most three levels deep: roots sit at depth 0,
their children at depth 1 and grandchildren at depth 2. Nothing may be
placed below depth 2 and no category may become its own ancestor.

The tree holds no state of its own. Every check re-reads the store, so a
``CategoryTree`` is cheap to build per request.
"""
from collections import defaultdict
from typing import Iterable, Optional, Sequence
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.error_handlers import (
    ResourceNotFoundError,
    InvalidParentError,
    MaxDepthExceededError,
    TreeIntegrityError,
)
from app.logging_config import get_logger
from app.models.category import Category
from app.schemas.category import CategoryTreeNode

logger = get_logger("category_tree")

# Deepest depth a category may occupy (root = 0)
MAX_DEPTH = 2

# Any parent chain longer than this is treated as corrupt (a cycle)
DEPTH_WALK_LIMIT = 10


def assemble_tree(
    categories: Iterable[Category],
    root_parent_id: Optional[uuid.UUID] = None,
    base_depth: int = 0
) -> list[CategoryTreeNode]:
    """
    Build nested nodes from a flat list of categories.

    Children keep the order of ``categories``. The walk is iterative and
    visits each category at most once. The stored parent links are corrupt,
    and ``TreeIntegrityError`` is raised, when a parent reference points at
    a category missing from ``categories``, when a category is met twice or
    below ``DEPTH_WALK_LIMIT``, or, for the whole forest, when some category
    is unreachable from any root.
    """
    categories = list(categories)
    known_ids = {category.id for category in categories}
    children: dict[Optional[uuid.UUID], list[Category]] = defaultdict(list)
    for category in categories:
        if category.parent_id is not None and category.parent_id not in known_ids:
            raise TreeIntegrityError(
                f"Category {category.id} references missing parent {category.parent_id}",
                category.id
            )
        children[category.parent_id].append(category)

    def node_for(category: Category, depth: int) -> CategoryTreeNode:
        return CategoryTreeNode(
            id=category.id,
            name=category.name,
            parent_id=category.parent_id,
            depth=depth
        )

    roots = [node_for(category, base_depth) for category in children.get(root_parent_id, [])]
    stack = list(roots)
    seen: set[uuid.UUID] = set()

    while stack:
        node = stack.pop()
        if node.id in seen or node.id == root_parent_id:
            raise TreeIntegrityError("Category hierarchy contains a cycle", node.id)
        if node.depth > DEPTH_WALK_LIMIT:
            raise TreeIntegrityError("Category hierarchy exceeds the depth walk limit", node.id)
        seen.add(node.id)

        for child in children.get(node.id, []):
            child_node = node_for(child, node.depth + 1)
            node.children.append(child_node)
            stack.append(child_node)

    if root_parent_id is None and len(seen) != len(known_ids):
        detached = next(category.id for category in categories if category.id not in seen)
        raise TreeIntegrityError("Category hierarchy contains a cycle detached from every root", detached)

    return roots


class CategoryTree:
    """Depth and cycle checks plus tree projections over the category table."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _get(self, category_id: uuid.UUID, lock: bool = False) -> Optional[Category]:
        query = select(Category).where(Category.id == category_id)
        if lock:
            # Serializes concurrent inserts under the same parent (no-op on SQLite)
            query = query.with_for_update()
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def ancestors(self, category_id: uuid.UUID) -> list[uuid.UUID]:
        """
        Ids on the path from ``category_id``'s parent up to its root.

        Raises:
            ResourceNotFoundError: unknown ``category_id``
            TreeIntegrityError: dangling parent reference or a chain longer
                than ``DEPTH_WALK_LIMIT``
        """
        category = await self._get(category_id)
        if category is None:
            raise ResourceNotFoundError("Category", category_id)

        path: list[uuid.UUID] = []
        parent_id = category.parent_id
        while parent_id is not None:
            path.append(parent_id)
            if len(path) > DEPTH_WALK_LIMIT:
                raise TreeIntegrityError(
                    f"Parent chain of category {category_id} exceeds {DEPTH_WALK_LIMIT} levels",
                    category_id
                )
            parent = await self._get(parent_id)
            if parent is None:
                raise TreeIntegrityError(
                    f"Parent chain of category {category_id} references missing category {parent_id}",
                    category_id
                )
            parent_id = parent.parent_id

        return path

    async def compute_depth(self, category_id: uuid.UUID) -> int:
        """Number of parent hops from ``category_id`` to its root (root = 0)."""
        return len(await self.ancestors(category_id))

    async def subtree_height(self, category_id: uuid.UUID) -> int:
        """Levels of descendants below ``category_id`` (0 for a leaf)."""
        height = 0
        frontier = [category_id]
        while frontier:
            result = await self.db.execute(
                select(Category.id).where(Category.parent_id.in_(frontier))
            )
            frontier = list(result.scalars().all())
            if not frontier:
                break
            height += 1
            if height > DEPTH_WALK_LIMIT:
                raise TreeIntegrityError(
                    f"Descendants of category {category_id} exceed {DEPTH_WALK_LIMIT} levels",
                    category_id
                )
        return height

    async def subtree_ids(self, category_id: uuid.UUID) -> list[uuid.UUID]:
        """``category_id`` followed by the ids of all its descendants."""
        collected = [category_id]
        frontier = [category_id]
        for _ in range(DEPTH_WALK_LIMIT + 1):
            result = await self.db.execute(
                select(Category.id).where(Category.parent_id.in_(frontier))
            )
            frontier = [child_id for child_id in result.scalars().all() if child_id not in collected]
            if not frontier:
                return collected
            collected.extend(frontier)
        raise TreeIntegrityError(
            f"Descendants of category {category_id} exceed {DEPTH_WALK_LIMIT} levels",
            category_id
        )

    async def validate_parent_assignment(
        self,
        category_id: Optional[uuid.UUID],
        proposed_parent_id: Optional[uuid.UUID]
    ) -> int:
        """
        Check that ``category_id`` (None for a new category) may sit under
        ``proposed_parent_id`` (None for a root).

        Returns:
            The depth the category will have after the assignment.

        Raises:
            InvalidParentError: self-parenting, unknown parent, or a cycle
            MaxDepthExceededError: the category or its descendants would end
                up deeper than ``MAX_DEPTH``
        """
        if category_id is not None and proposed_parent_id == category_id:
            raise InvalidParentError("A category cannot be its own parent", proposed_parent_id)

        if proposed_parent_id is None:
            return 0

        parent = await self._get(proposed_parent_id, lock=True)
        if parent is None:
            raise InvalidParentError("Parent category does not exist", proposed_parent_id)

        parent_path = await self.ancestors(proposed_parent_id)
        parent_depth = len(parent_path)
        if parent_depth >= MAX_DEPTH:
            raise MaxDepthExceededError(
                f"Cannot nest under a category at depth {parent_depth}; "
                f"categories are limited to {MAX_DEPTH + 1} levels",
                MAX_DEPTH
            )

        if category_id is not None:
            if category_id in parent_path:
                raise InvalidParentError(
                    "A category cannot be moved under one of its own descendants",
                    proposed_parent_id
                )
            height = await self.subtree_height(category_id)
            if parent_depth + 1 + height > MAX_DEPTH:
                raise MaxDepthExceededError(
                    "Moving this category would push its subcategories below the "
                    f"maximum depth of {MAX_DEPTH + 1} levels",
                    MAX_DEPTH
                )

        return parent_depth + 1

    async def assert_within_bounds(self, category_id: uuid.UUID) -> None:
        """
        Re-check the depth bound for a just-written category and its subtree.

        Run after ``flush()`` and before ``commit()`` so a concurrent write
        that slipped in between validation and write is rejected.
        """
        depth = await self.compute_depth(category_id)
        height = await self.subtree_height(category_id)
        if depth + height > MAX_DEPTH:
            raise MaxDepthExceededError(
                f"Category hierarchy changed concurrently; depth limit of {MAX_DEPTH + 1} levels would be exceeded",
                MAX_DEPTH
            )

    async def build_tree(self, root_parent_id: Optional[uuid.UUID] = None) -> list[CategoryTreeNode]:
        """
        Nested view of the categories under ``root_parent_id`` (whole forest
        when None), loaded with a single query ordered by creation time.

        Raises:
            ResourceNotFoundError: ``root_parent_id`` does not exist
            TreeIntegrityError: corrupt parent links
        """
        base_depth = 0
        if root_parent_id is not None:
            base_depth = await self.compute_depth(root_parent_id) + 1

        result = await self.db.execute(
            select(Category).order_by(Category.created_at, Category.id)
        )
        categories: Sequence[Category] = result.scalars().all()
        return assemble_tree(categories, root_parent_id, base_depth)
