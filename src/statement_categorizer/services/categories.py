import re
from collections.abc import Mapping
from typing import Any, get_args

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session, sessionmaker

from statement_categorizer.domain import default_categories
from statement_categorizer.errors import CategoryInUseError, InvalidCategoryError, NotFoundError
from statement_categorizer.logger import get_logger
from statement_categorizer.models import CategoryNode, CategoryType
from statement_categorizer.storage.database import session_scope
from statement_categorizer.storage.orm import Category, Transaction

logger = get_logger(__name__)

_COLOR = re.compile(r"^#[0-9A-Fa-f]{6}$")
CATEGORY_TYPES = frozenset(get_args(CategoryType))
UPDATABLE_FIELDS = frozenset({"name", "type", "color", "icon", "parent_id"})


def visible_to(user_id: str):
    """Filter for a user's own categories plus global defaults."""
    return or_(Category.user_id == user_id, Category.user_id.is_(None))


def visible_categories(session: Session, user_id: str, category_type: str | None = None) -> list[Category]:
    stmt = select(Category).where(visible_to(user_id))
    if category_type:
        stmt = stmt.where(Category.type == category_type)
    return list(session.scalars(stmt.order_by(Category.name)).all())


def category_ids_by_name(categories: list[Category]) -> dict[str, str]:
    # The user's own category wins over a global default with the same name.
    ids: dict[str, str] = {}
    for category in sorted(categories, key=lambda c: c.user_id is None):
        ids.setdefault(category.name, category.id)
    return ids


def _check_name(name: str | None) -> str:
    name = (name or "").strip()
    if not name:
        raise InvalidCategoryError("Category name is required")
    return name


def _check_color(color: str | None) -> None:
    if not _COLOR.match(color or ""):
        raise InvalidCategoryError(f"Invalid color format: {color!r}")


def _check_type(category_type: str | None) -> None:
    if category_type not in CATEGORY_TYPES:
        raise InvalidCategoryError(f"Invalid category type: {category_type!r}")


def _check_parent(session: Session, user_id: str, parent_id: str) -> Category:
    parent = session.get(Category, parent_id)
    if parent is None or parent.user_id not in (user_id, None):
        raise InvalidCategoryError(f"Unknown parent category {parent_id}")
    if parent.parent_id is not None:
        raise InvalidCategoryError("Categories can only be nested two levels deep")
    return parent


class CategoryService:
    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self.session_factory = session_factory

    def seed_defaults(self, user_id: str, session: Session | None = None) -> int:
        """Create the default category tree for a user. Returns how many were created."""
        with session_scope(self.session_factory, session) as db:
            existing = db.scalar(
                select(func.count(Category.id)).where(Category.user_id == user_id, Category.is_default.is_(True))
            )
            if existing:
                return 0

            parents: dict[str, Category] = {}
            for name, category_type, color, icon in default_categories.TOP_LEVEL:
                category = Category(
                    user_id=user_id, name=name, type=category_type, color=color, icon=icon, is_default=True
                )
                db.add(category)
                parents[name] = category
            db.flush()

            created = len(parents)
            for parent_name, children in default_categories.CHILDREN.items():
                parent = parents[parent_name]
                for name, category_type, color, icon in children:
                    db.add(
                        Category(
                            user_id=user_id,
                            name=name,
                            type=category_type,
                            color=color,
                            icon=icon,
                            is_default=True,
                            parent_id=parent.id,
                        )
                    )
                    created += 1
            db.flush()
        logger.info("[CATEGORY] Seeded %d default categories for user %s", created, user_id)
        return created

    def list_tree(self, user_id: str) -> list[CategoryNode]:
        with session_scope(self.session_factory) as db:
            categories = visible_categories(db, user_id)

        nodes = {
            category.id: CategoryNode(
                id=category.id,
                name=category.name,
                type=category.type,
                color=category.color,
                icon=category.icon,
                is_default=category.is_default,
                parent_id=category.parent_id,
            )
            for category in categories
        }
        roots: list[CategoryNode] = []
        for node in nodes.values():
            parent = nodes.get(node.parent_id) if node.parent_id else None
            # Two levels only: a child is never placed under another child.
            if parent is not None and parent.parent_id is None:
                parent.children.append(node)
            else:
                roots.append(node)
        return roots

    def available_names(self, user_id: str, category_type: str | None = None) -> list[str]:
        with session_scope(self.session_factory) as db:
            return [category.name for category in visible_categories(db, user_id, category_type)]

    def create(
        self,
        user_id: str,
        name: str,
        category_type: str,
        color: str,
        icon: str | None = None,
        parent_id: str | None = None,
    ) -> Category:
        name = _check_name(name)
        _check_color(color)
        _check_type(category_type)

        with session_scope(self.session_factory) as db:
            if parent_id:
                _check_parent(db, user_id, parent_id)

            category = Category(
                user_id=user_id,
                name=name,
                type=category_type,
                color=color,
                icon=icon,
                parent_id=parent_id,
                is_default=False,
            )
            db.add(category)
            db.flush()
        logger.info("[CATEGORY] Created '%s' (%s) for user %s", name, category_type, user_id)
        return category

    def update(self, user_id: str, category_id: str, changes: Mapping[str, Any]) -> Category:
        """
        Apply a partial update to one of the user's categories.

        ``changes`` may hold ``name``, ``type``, ``color``, ``icon`` and
        ``parent_id``; a ``parent_id`` of ``None`` makes the category a root.
        """
        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise InvalidCategoryError(f"Cannot update category fields: {', '.join(sorted(unknown))}")

        with session_scope(self.session_factory) as db:
            category = db.get(Category, category_id)
            if category is None or category.user_id != user_id:
                raise NotFoundError(f"Category {category_id} not found")

            if "name" in changes:
                category.name = _check_name(changes["name"])
            if "color" in changes:
                _check_color(changes["color"])
                category.color = changes["color"]
            if "type" in changes:
                _check_type(changes["type"])
                category.type = changes["type"]
            if "icon" in changes:
                category.icon = changes["icon"]
            if "parent_id" in changes:
                parent_id = changes["parent_id"]
                if parent_id:
                    if parent_id == category.id:
                        raise InvalidCategoryError("A category cannot be its own parent")
                    has_children = db.scalar(
                        select(func.count(Category.id)).where(Category.parent_id == category.id)
                    )
                    if has_children:
                        raise InvalidCategoryError("Categories can only be nested two levels deep")
                    _check_parent(db, user_id, parent_id)
                category.parent_id = parent_id or None
            db.flush()
        logger.info("[CATEGORY] Updated category %s for user %s (%s)", category_id, user_id, ", ".join(changes))
        return category

    def delete(self, user_id: str, category_id: str) -> None:
        with session_scope(self.session_factory) as db:
            category = db.get(Category, category_id)
            if category is None or category.user_id != user_id:
                raise NotFoundError(f"Category {category_id} not found")
            if category.is_default:
                raise InvalidCategoryError("Default categories cannot be deleted")

            in_use = db.scalar(select(func.count(Transaction.id)).where(Transaction.category_id == category_id))
            if in_use:
                raise CategoryInUseError(
                    f"Category has {in_use} associated transactions; recategorize them first"
                )
            children = db.scalar(select(func.count(Category.id)).where(Category.parent_id == category_id))
            if children:
                raise CategoryInUseError(f"Category has {children} subcategories; delete them first")

            db.delete(category)
        logger.info("[CATEGORY] Deleted category %s for user %s", category_id, user_id)
