"""
Engagement service: likes and views on published content.

Every counter change is a single atomic UPDATE in ``ArticleRepository``;
two readers liking the same article at the same time both land in the
final count.  For one user toggling the same article twice at once, the
like row's primary key serialises the attempts: the DELETE that runs
second finds nothing, and an INSERT that loses the race is reported as
"already liked" instead of failing.
"""
import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from app.errors import ArticleNotFoundError, UserNotFoundError
from app.models import User
from app.repositories import ArticleRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LikeToggleResult:
    like_count: int
    is_liked: bool


async def toggle_like(db: AsyncSession, article_id: int, user_id: int) -> LikeToggleResult:
    """Like the article if *user_id* has not liked it yet, otherwise unlike it."""
    repo = ArticleRepository(db)
    if not await repo.exists(article_id):
        raise ArticleNotFoundError(article_id)
    if await db.get(User, user_id) is None:
        raise UserNotFoundError(user_id)

    if await repo.delete_like(article_id, user_id):
        count = await repo.decrement_like_count(article_id)
        logger.debug("User %s unliked article %s (likes=%s)", user_id, article_id, count)
        return LikeToggleResult(like_count=count, is_liked=False)

    if await repo.insert_like(article_id, user_id):
        count = await repo.increment_like_count(article_id)
        logger.debug("User %s liked article %s (likes=%s)", user_id, article_id, count)
        return LikeToggleResult(like_count=count, is_liked=True)

    # A concurrent request from the same user inserted the row first.
    count = await repo.like_count(article_id)
    logger.debug("User %s already likes article %s", user_id, article_id)
    return LikeToggleResult(like_count=count, is_liked=True)


async def get_like_status(db: AsyncSession, article_id: int, user_id: int) -> bool:
    return await ArticleRepository(db).like_exists(article_id, user_id)


async def increment_view_count(db: AsyncSession, article_id: int) -> int:
    """Record one view and return the article's new view count."""
    count = await ArticleRepository(db).increment_view_count(article_id)
    if count is None:
        raise ArticleNotFoundError(article_id)
    return count
