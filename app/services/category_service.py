"""
Category service: CRUD for the Category aggregate.

Names are unique.  A category that still has articles cannot be
deleted; the caller must move or delete those articles first.
"""
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.errors import CategoryInUseError, CategoryNotFoundError, DuplicateCategoryNameError
from app.models import Category
from app.patch import from_optional, resolve
from app.repositories import CategoryRepository
from app.schemas import CategoryCreate, CategoryUpdate

logger = logging.getLogger(__name__)


async def _flush_or_duplicate(db: AsyncSession, name: str) -> None:
    try:
        await db.flush()
    except IntegrityError as exc:
        raise DuplicateCategoryNameError(name) from exc


async def create_category(db: AsyncSession, data: CategoryCreate) -> Category:
    repo = CategoryRepository(db)
    if await repo.name_taken(data.name):
        raise DuplicateCategoryNameError(data.name)

    category = Category(name=data.name, description=data.description)
    db.add(category)
    await _flush_or_duplicate(db, data.name)
    logger.info("Category %s created (name=%r)", category.id, category.name)
    return category


async def list_categories(db: AsyncSession) -> list[tuple[Category, int]]:
    """Return every category with the number of articles filed under it."""
    return await CategoryRepository(db).list_with_counts()


async def get_category(db: AsyncSession, category_id: int) -> Category:
    category = await CategoryRepository(db).get(category_id)
    if category is None:
        raise CategoryNotFoundError(category_id)
    return category


async def update_category(
    db: AsyncSession, category_id: int, data: CategoryUpdate
) -> Category:
    """
    Rename and/or re-describe a category.

    ``name`` may not be cleared; an explicit ``description: null`` clears
    the description.
    """
    repo = CategoryRepository(db)
    category = await get_category(db, category_id)

    if data.name is not None and data.name != category.name:
        if await repo.name_taken(data.name, exclude_id=category_id):
            raise DuplicateCategoryNameError(data.name)
        category.name = data.name

    description = from_optional(data.model_fields_set, "description", data.description)
    category.description = resolve(description, category.description)

    await _flush_or_duplicate(db, category.name)
    return category


async def delete_category(db: AsyncSession, category_id: int) -> None:
    """Delete the category; refuse while any article references it."""
    repo = CategoryRepository(db)
    category = await get_category(db, category_id)

    in_use = await repo.count_articles(category_id)
    if in_use:
        raise CategoryInUseError(category_id, in_use)

    try:
        await repo.delete(category)
    except IntegrityError as exc:
        # An article was filed under the category after the count above.
        raise CategoryInUseError(category_id) from exc
    logger.info("Category %s deleted", category_id)
