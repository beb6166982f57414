"""
Persistence adapters for the Article and Category aggregates.

Design notes
------------
- Relationships on the models are ``lazy="raise"``; every read that
  needs author or category goes through ``find_with_relations`` or
  ``find_many``, which name the joins explicitly.
- Counter columns are only ever written with ``UPDATE ... SET col = col
  +/- 1``.  Nothing here reads a counter into Python and writes it back.
- The like table's primary key is the uniqueness authority for
  ``(article_id, user_id)``; ``insert_like`` uses the dialect's
  ``ON CONFLICT DO NOTHING`` so a lost race reports zero rows instead of
  raising.
- Repositories flush but never commit; ``get_db`` owns the transaction.
"""
from sqlalchemy import case, delete, func, or_, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import contains_eager

from app.models import Article, ArticleLike, Category, User
from app.schemas import ArticleListQuery

_ORDERINGS = {
    "newest": (Article.created_at.desc(), Article.id.asc()),
    "oldest": (Article.created_at.asc(), Article.id.asc()),
    "views": (Article.view_count.desc(), Article.id.asc()),
    "likes": (Article.like_count.desc(), Article.id.asc()),
}

# Counter writes bypass the ORM identity map; callers reload with
# populate_existing when they need the new values on an instance.
_NO_SYNC = {"synchronize_session": False}


class ArticleRepository:
    def __init__(self, session: AsyncSession):
        self._session = session

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def _with_relations(self):
        return (
            select(Article)
            .join(Category, Article.category_id == Category.id)
            .join(User, Article.author_id == User.id)
            .options(contains_eager(Article.category), contains_eager(Article.author))
        )

    async def exists(self, article_id: int) -> bool:
        result = await self._session.execute(
            select(Article.id).where(Article.id == article_id)
        )
        return result.scalar_one_or_none() is not None

    async def find_with_relations(self, article_id: int) -> Article | None:
        """Return the article with ``category`` and ``author`` populated, or None."""
        q = (
            self._with_relations()
            .where(Article.id == article_id)
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(q)
        return result.unique().scalar_one_or_none()

    async def slug_taken(self, slug: str, exclude_id: int | None = None) -> bool:
        q = select(Article.id).where(Article.slug == slug)
        if exclude_id is not None:
            q = q.where(Article.id != exclude_id)
        result = await self._session.execute(q.limit(1))
        return result.scalar_one_or_none() is not None

    def _filters(self, query: ArticleListQuery) -> list:
        conditions = []
        if query.is_published is not None:
            conditions.append(Article.is_published.is_(query.is_published))
        if query.category_ids:
            conditions.append(Article.category_id.in_(query.category_ids))
        if query.search:
            # lower() folds Unicode on PostgreSQL but only ASCII on SQLite.
            needle = query.search.lower()
            author_name = User.first_name + " " + User.last_name
            conditions.append(
                or_(
                    *(
                        func.lower(col).contains(needle, autoescape=True)
                        for col in (
                            Article.title,
                            Article.content,
                            Article.excerpt,
                            Category.name,
                            User.first_name,
                            User.last_name,
                            author_name,
                        )
                    )
                )
            )
        return conditions

    async def find_many(self, query: ArticleListQuery) -> tuple[list[Article], int]:
        """
        Return one page of articles matching *query* plus the total count.

        Two statements are issued: a COUNT over the same joins and filters,
        then the page itself with category and author loaded from the join.
        """
        conditions = self._filters(query)

        count_q = (
            select(func.count(Article.id))
            .join(Category, Article.category_id == Category.id)
            .join(User, Article.author_id == User.id)
            .where(*conditions)
        )
        total: int = (await self._session.execute(count_q)).scalar_one()

        page_q = (
            self._with_relations()
            .where(*conditions)
            .order_by(*_ORDERINGS[query.sort])
            .offset(query.offset)
            .limit(query.page_size)
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(page_q)
        return list(result.unique().scalars().all()), total

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def delete(self, article_id: int) -> bool:
        """Delete the article and its likes; return False if it did not exist."""
        await self._session.execute(
            delete(ArticleLike).where(ArticleLike.article_id == article_id),
            execution_options=_NO_SYNC,
        )
        result = await self._session.execute(
            delete(Article).where(Article.id == article_id),
            execution_options=_NO_SYNC,
        )
        return result.rowcount > 0

    # ------------------------------------------------------------------
    # Counters
    # ------------------------------------------------------------------

    async def increment_view_count(self, article_id: int) -> int | None:
        """Atomically add one view; return the new count or None if no such article."""
        q = (
            update(Article)
            .where(Article.id == article_id)
            .values(view_count=Article.view_count + 1)
            .returning(Article.view_count)
        )
        result = await self._session.execute(q, execution_options=_NO_SYNC)
        return result.scalar_one_or_none()

    async def increment_like_count(self, article_id: int) -> int:
        q = (
            update(Article)
            .where(Article.id == article_id)
            .values(like_count=Article.like_count + 1)
            .returning(Article.like_count)
        )
        result = await self._session.execute(q, execution_options=_NO_SYNC)
        return result.scalar_one()

    async def decrement_like_count(self, article_id: int) -> int:
        """Atomically remove one like, never going below zero."""
        q = (
            update(Article)
            .where(Article.id == article_id)
            .values(
                like_count=case(
                    (Article.like_count > 0, Article.like_count - 1),
                    else_=0,
                )
            )
            .returning(Article.like_count)
        )
        result = await self._session.execute(q, execution_options=_NO_SYNC)
        return result.scalar_one()

    async def like_count(self, article_id: int) -> int:
        result = await self._session.execute(
            select(Article.like_count).where(Article.id == article_id)
        )
        return result.scalar_one()

    # ------------------------------------------------------------------
    # Likes
    # ------------------------------------------------------------------

    async def like_exists(self, article_id: int, user_id: int) -> bool:
        result = await self._session.execute(
            select(ArticleLike.article_id).where(
                ArticleLike.article_id == article_id,
                ArticleLike.user_id == user_id,
            )
        )
        return result.scalar_one_or_none() is not None

    async def insert_like(self, article_id: int, user_id: int) -> bool:
        """Insert the like row; return False if the pair already existed."""
        dialect = self._session.get_bind().dialect.name
        if dialect == "postgresql":
            stmt = postgresql.insert(ArticleLike.__table__)
        elif dialect == "sqlite":
            stmt = sqlite.insert(ArticleLike.__table__)
        else:
            raise NotImplementedError(f"Likes are not supported on dialect {dialect!r}")
        stmt = stmt.values(article_id=article_id, user_id=user_id).on_conflict_do_nothing(
            index_elements=["article_id", "user_id"]
        )
        result = await self._session.execute(stmt)
        return result.rowcount == 1

    async def delete_like(self, article_id: int, user_id: int) -> bool:
        """Delete the like row; return True if one was removed."""
        result = await self._session.execute(
            delete(ArticleLike).where(
                ArticleLike.article_id == article_id,
                ArticleLike.user_id == user_id,
            ),
            execution_options=_NO_SYNC,
        )
        return result.rowcount == 1


class CategoryRepository:
    def __init__(self, session: AsyncSession):
        self._session = session

    async def get(self, category_id: int) -> Category | None:
        result = await self._session.execute(
            select(Category).where(Category.id == category_id)
        )
        return result.scalar_one_or_none()

    async def name_taken(self, name: str, exclude_id: int | None = None) -> bool:
        q = select(Category.id).where(Category.name == name)
        if exclude_id is not None:
            q = q.where(Category.id != exclude_id)
        result = await self._session.execute(q.limit(1))
        return result.scalar_one_or_none() is not None

    async def list_with_counts(self) -> list[tuple[Category, int]]:
        q = (
            select(Category, func.count(Article.id))
            .outerjoin(Article, Article.category_id == Category.id)
            .group_by(Category.id)
            .order_by(Category.name)
        )
        result = await self._session.execute(q)
        return [(category, count) for category, count in result.all()]

    async def count_articles(self, category_id: int) -> int:
        result = await self._session.execute(
            select(func.count(Article.id)).where(Article.category_id == category_id)
        )
        return result.scalar_one()

    async def delete(self, category: Category) -> None:
        await self._session.delete(category)
        await self._session.flush()
