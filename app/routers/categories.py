from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.dependencies import Principal, require_staff
from app.schemas import CategoryCreate, CategoryResponse, CategoryUpdate, CategoryWithCount
from app.services import category_service

router = APIRouter(prefix="/api/v1/categories", tags=["categories"])


@router.get("", response_model=list[CategoryWithCount])
async def list_categories(db: AsyncSession = Depends(get_db)):
    rows = await category_service.list_categories(db)
    return [
        CategoryWithCount(
            id=category.id,
            name=category.name,
            description=category.description,
            article_count=count,
        )
        for category, count in rows
    ]


@router.get("/{category_id}", response_model=CategoryResponse)
async def get_category(category_id: int, db: AsyncSession = Depends(get_db)):
    return await category_service.get_category(db, category_id)


@router.post("", status_code=201, response_model=CategoryResponse)
async def create_category(
    data: CategoryCreate,
    db: AsyncSession = Depends(get_db),
    _: Principal = Depends(require_staff),
):
    return await category_service.create_category(db, data)


@router.put("/{category_id}", response_model=CategoryResponse)
async def update_category(
    category_id: int,
    data: CategoryUpdate,
    db: AsyncSession = Depends(get_db),
    _: Principal = Depends(require_staff),
):
    return await category_service.update_category(db, category_id, data)


@router.delete("/{category_id}", status_code=204)
async def delete_category(
    category_id: int,
    db: AsyncSession = Depends(get_db),
    _: Principal = Depends(require_staff),
):
    await category_service.delete_category(db, category_id)
    return Response(status_code=204)
