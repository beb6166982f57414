from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.dependencies import Principal, require_staff
from app.models import Article, ArticleLike, Category
from app.schemas import MetricsResponse

router = APIRouter(prefix="/api/v1/metrics", tags=["metrics"])


@router.get("", response_model=MetricsResponse)
async def get_metrics(
    db: AsyncSession = Depends(get_db),
    _: Principal = Depends(require_staff),
):
    article_totals = (
        await db.execute(
            select(
                func.count(Article.id),
                func.count(Article.id).filter(Article.is_published.is_(True)),
                func.coalesce(func.sum(Article.view_count), 0),
            )
        )
    ).one()

    total_categories = (await db.execute(select(func.count()).select_from(Category))).scalar_one()

    total_likes = (await db.execute(select(func.count()).select_from(ArticleLike))).scalar_one()

    return MetricsResponse(
        total_articles=article_totals[0],
        published_articles=article_totals[1],
        total_categories=total_categories,
        total_likes=total_likes,
        total_views=article_totals[2],
    )
