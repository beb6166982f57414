"""Seeding helpers shared by the test modules."""
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import Article, Category, Role, User, utcnow
from app.security import create_access_token
from app.slugs import slugify


def auth_headers(user: User | int, role: Role | None = None) -> dict[str, str]:
    """Authorization header for *user* (or a bare user id with *role*)."""
    if isinstance(user, User):
        user_id, role = user.id, role or user.role
    else:
        user_id = user
    token = create_access_token(user_id, role or Role.USER)
    return {"Authorization": f"Bearer {token}"}


async def make_user(
    db: AsyncSession,
    email: str,
    role: Role = Role.USER,
    first_name: str = "Test",
    last_name: str = "User",
) -> User:
    user = User(first_name=first_name, last_name=last_name, email=email, role=role)
    db.add(user)
    await db.flush()
    return user


async def make_category(db: AsyncSession, name: str, description: str | None = None) -> Category:
    category = Category(name=name, description=description)
    db.add(category)
    await db.flush()
    return category


async def make_article(
    db: AsyncSession,
    author: User,
    category: Category,
    title: str,
    content: str = "Body",
    is_published: bool = True,
    **fields,
) -> Article:
    """Insert an article row directly, bypassing the service."""
    article = Article(
        title=title,
        slug=slugify(title),
        content=content,
        category_id=category.id,
        author_id=author.id,
        is_published=is_published,
        published_at=utcnow() if is_published else None,
        **fields,
    )
    db.add(article)
    await db.flush()
    return article
