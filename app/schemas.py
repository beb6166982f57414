from dataclasses import dataclass, field
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from app.models import Role
from app.patch import CLEARED, UNCHANGED, FieldUpdate, Set, from_optional


class CamelModel(BaseModel):
    """camelCase on the wire, snake_case (or camelCase) accepted on input."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# --- User ---

class UserCreate(CamelModel):
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    email: str = Field(max_length=255, pattern=r"^[^@\s]+@[^@\s]+$")
    role: Role = Role.USER


class AuthorResponse(CamelModel):
    id: int
    first_name: str
    last_name: str
    email: str


class UserResponse(AuthorResponse):
    role: Role
    created_at: datetime


# --- Category ---

class CategoryCreate(CamelModel):
    name: str = Field(min_length=1, max_length=100)
    description: str | None = None


class CategoryUpdate(CamelModel):
    name: str | None = Field(None, min_length=1, max_length=100)
    description: str | None = None


class CategoryResponse(CamelModel):
    id: int
    name: str
    description: str | None = None


class CategoryWithCount(CategoryResponse):
    article_count: int = 0


# --- Article ---

class ArticleCreate(CamelModel):
    title: str = Field(min_length=1, max_length=300)
    content: str = Field(min_length=1)
    excerpt: str | None = None
    category_id: int
    is_published: bool = False
    featured_image: str | None = None

    @field_validator("excerpt", "featured_image")
    @classmethod
    def _blank_to_none(cls, value: str | None) -> str | None:
        if value is not None and not value.strip():
            return None
        return value


@dataclass
class ArticlePatch:
    """Typed partial update handed to ``article_service.update_article``."""

    title: FieldUpdate[str] = UNCHANGED
    content: FieldUpdate[str] = UNCHANGED
    excerpt: FieldUpdate[str] = UNCHANGED
    category_id: FieldUpdate[int] = UNCHANGED
    is_published: FieldUpdate[bool] = UNCHANGED
    featured_image: FieldUpdate[str] = UNCHANGED

    def changed_fields(self) -> list[str]:
        return [
            name for name in self.__dataclass_fields__
            if getattr(self, name) is not UNCHANGED
        ]


class ArticleUpdate(CamelModel):
    """
    Request body for a partial article update.

    ``clear_image`` is the explicit "remove the featured image" signal sent
    by clients that cannot send ``featuredImage: null`` (e.g. form posts).
    """

    title: str | None = Field(None, min_length=1, max_length=300)
    content: str | None = Field(None, min_length=1)
    excerpt: str | None = None
    category_id: int | None = None
    is_published: bool | None = None
    featured_image: str | None = None
    clear_image: bool = False

    def to_patch(self) -> ArticlePatch:
        fields_set = self.model_fields_set

        def required(name: str) -> FieldUpdate:
            # Null on a non-nullable column means "not sent".
            value = getattr(self, name)
            return UNCHANGED if value is None else Set(value)

        if self.clear_image:
            image = CLEARED
        else:
            image = from_optional(fields_set, "featured_image", self.featured_image)

        return ArticlePatch(
            title=required("title"),
            content=required("content"),
            excerpt=from_optional(fields_set, "excerpt", self.excerpt),
            category_id=required("category_id"),
            is_published=required("is_published"),
            featured_image=image,
        )


class ArticleResponse(CamelModel):
    id: int
    title: str
    slug: str
    content: str
    excerpt: str | None = None
    category: CategoryResponse
    author: AuthorResponse
    featured_image: str | None = None
    view_count: int
    like_count: int
    is_published: bool
    published_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


# --- Listing ---

SORT_KEYS = ("newest", "oldest", "views", "likes")


@dataclass
class ArticleListQuery:
    page: int = 1
    page_size: int = 10
    sort: str = "newest"
    category_ids: list[int] = field(default_factory=list)
    is_published: bool | None = None
    search: str | None = None

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


class ArticleListResponse(CamelModel):
    items: list[ArticleResponse]
    total_count: int
    page: int
    page_size: int
    pages: int


# --- Engagement ---

class LikeToggleResponse(CamelModel):
    like_count: int
    is_liked: bool


class LikeStatusResponse(CamelModel):
    is_liked: bool


class ViewCountResponse(CamelModel):
    view_count: int


# --- Metrics ---

class MetricsResponse(CamelModel):
    total_articles: int
    published_articles: int
    total_categories: int
    total_likes: int
    total_views: int
