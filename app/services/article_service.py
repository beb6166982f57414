"""
Article service: lifecycle of the Article aggregate.

Design notes
------------
- Slugs are derived from titles and must be unique.  A collision is a
  ``DuplicateSlugError``; there is no silent suffixing.  The pre-check
  gives a clean error in the common case and the unique index on
  ``articles.slug`` remains the authority under concurrent writes.
- ``published_at`` is only touched on a publish transition: false→true
  stamps it, true→false clears it, everything else leaves it alone.
- Service functions flush but do not commit; the transaction boundary
  is owned by the ``get_db`` dependency in the router layer.
"""
import logging
import math

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.errors import (
    ArticleNotFoundError,
    CategoryNotFoundError,
    DuplicateSlugError,
    InvalidArgumentError,
    UserNotFoundError,
)
from app.models import Article, User, utcnow
from app.patch import CLEARED, UNCHANGED
from app.repositories import ArticleRepository, CategoryRepository
from app.schemas import SORT_KEYS, ArticleCreate, ArticleListQuery, ArticlePatch
from app.slugs import slugify

logger = logging.getLogger(__name__)

# Columns that may be set to NULL through a patch.
_CLEARABLE = frozenset({"excerpt", "featured_image"})


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _derive_slug(title: str) -> str:
    slug = slugify(title)
    if not slug:
        raise InvalidArgumentError("title", "Title must contain at least one letter or digit")
    return slug


async def _ensure_category(db: AsyncSession, category_id: int) -> None:
    if await CategoryRepository(db).get(category_id) is None:
        raise CategoryNotFoundError(category_id)


async def _flush_or_conflict(db: AsyncSession, slug: str) -> None:
    try:
        await db.flush()
    except IntegrityError as exc:
        if "slug" in str(exc.orig).lower():
            raise DuplicateSlugError(slug) from exc
        raise


def validate_list_query(query: ArticleListQuery) -> ArticleListQuery:
    """
    Reject malformed listing input and clamp ``page_size`` to
    ``settings.MAX_PAGE_SIZE``.
    """
    if query.page < 1:
        raise InvalidArgumentError("page", "page must be >= 1")
    if query.page_size < 1:
        raise InvalidArgumentError("page_size", "page_size must be >= 1")
    if query.sort not in SORT_KEYS:
        raise InvalidArgumentError(
            "sort", f"sort must be one of {', '.join(SORT_KEYS)}"
        )
    query.page_size = min(query.page_size, settings.MAX_PAGE_SIZE)
    if query.search is not None:
        query.search = query.search.strip() or None
    return query


def page_count(total: int, page_size: int) -> int:
    return math.ceil(total / page_size) if total > 0 else 0


# ---------------------------------------------------------------------------
# Public service functions
# ---------------------------------------------------------------------------

async def create_article(db: AsyncSession, data: ArticleCreate, author_id: int) -> Article:
    """
    Create a new article authored by *author_id* and return it with its
    category and author loaded.
    """
    await _ensure_category(db, data.category_id)
    if await db.get(User, author_id) is None:
        raise UserNotFoundError(author_id)

    repo = ArticleRepository(db)
    slug = _derive_slug(data.title)
    if await repo.slug_taken(slug):
        raise DuplicateSlugError(slug)

    article = Article(
        title=data.title,
        slug=slug,
        content=data.content,
        excerpt=data.excerpt,
        featured_image=data.featured_image,
        category_id=data.category_id,
        author_id=author_id,
        is_published=data.is_published,
        published_at=utcnow() if data.is_published else None,
        view_count=0,
        like_count=0,
    )
    db.add(article)
    await _flush_or_conflict(db, slug)

    logger.info(
        "Article %s created by user %s (slug=%s, published=%s)",
        article.id, author_id, slug, article.is_published,
    )
    return await repo.find_with_relations(article.id)


async def list_articles(
    db: AsyncSession, query: ArticleListQuery
) -> tuple[list[Article], int]:
    """Return ``(items, total)`` for one page of articles matching *query*."""
    query = validate_list_query(query)
    return await ArticleRepository(db).find_many(query)


async def get_article(
    db: AsyncSession, article_id: int, increment_view: bool = False
) -> Article:
    """
    Return the article with relations loaded.

    With *increment_view* the view counter is bumped atomically first, so
    the returned instance already carries the new count.
    """
    repo = ArticleRepository(db)
    if increment_view:
        if await repo.increment_view_count(article_id) is None:
            raise ArticleNotFoundError(article_id)

    article = await repo.find_with_relations(article_id)
    if article is None:
        raise ArticleNotFoundError(article_id)
    return article


async def update_article(db: AsyncSession, article_id: int, patch: ArticlePatch) -> Article:
    """
    Apply *patch* to the article and return the updated article.

    Only fields tagged ``Set`` or ``CLEARED`` are touched; the author is
    never changed.
    """
    repo = ArticleRepository(db)
    article = await repo.find_with_relations(article_id)
    if article is None:
        raise ArticleNotFoundError(article_id)

    for name in patch.changed_fields():
        if getattr(patch, name) is CLEARED and name not in _CLEARABLE:
            raise InvalidArgumentError(name, f"{name} cannot be cleared")

    if patch.category_id is not UNCHANGED and patch.category_id.value != article.category_id:
        await _ensure_category(db, patch.category_id.value)
        article.category_id = patch.category_id.value

    if patch.title is not UNCHANGED:
        slug = _derive_slug(patch.title.value)
        if slug != article.slug and await repo.slug_taken(slug, exclude_id=article.id):
            raise DuplicateSlugError(slug)
        article.title = patch.title.value
        article.slug = slug

    if patch.content is not UNCHANGED:
        article.content = patch.content.value
    if patch.excerpt is not UNCHANGED:
        article.excerpt = None if patch.excerpt is CLEARED else patch.excerpt.value
    if patch.featured_image is not UNCHANGED:
        article.featured_image = (
            None if patch.featured_image is CLEARED else patch.featured_image.value
        )

    if patch.is_published is not UNCHANGED:
        was_published = article.is_published
        now_published = patch.is_published.value
        if now_published and not was_published:
            article.published_at = utcnow()
            logger.info("Article %s published", article.id)
        elif was_published and not now_published:
            article.published_at = None
            logger.info("Article %s unpublished", article.id)
        article.is_published = now_published

    await _flush_or_conflict(db, article.slug)
    return await repo.find_with_relations(article_id)


async def delete_article(db: AsyncSession, article_id: int) -> None:
    """Delete the article and every like attached to it."""
    if not await ArticleRepository(db).delete(article_id):
        raise ArticleNotFoundError(article_id)
    logger.info("Article %s deleted", article_id)
