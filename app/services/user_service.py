"""
User service: the staff and reader accounts that author and like articles.

Credentials live with the external auth service; this table only holds
the identity and role that bearer tokens refer to.
"""
import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.errors import DuplicateEmailError, UserNotFoundError
from app.models import User
from app.schemas import UserCreate

logger = logging.getLogger(__name__)


async def list_users(db: AsyncSession) -> list[User]:
    """Return all users, newest first."""
    result = await db.execute(select(User).order_by(User.created_at.desc(), User.id.desc()))
    return list(result.scalars().all())


async def get_user(db: AsyncSession, user_id: int) -> User:
    user = await db.get(User, user_id)
    if user is None:
        raise UserNotFoundError(user_id)
    return user


async def create_user(db: AsyncSession, data: UserCreate) -> User:
    """
    Create a user.

    Emails are stored lower-case, so the uniqueness check is
    case-insensitive.
    """
    email = data.email.lower()
    existing = await db.execute(select(User.id).where(User.email == email))
    if existing.scalar_one_or_none() is not None:
        raise DuplicateEmailError(email)

    user = User(
        first_name=data.first_name,
        last_name=data.last_name,
        email=email,
        role=data.role,
    )
    db.add(user)
    try:
        await db.flush()
    except IntegrityError as exc:
        raise DuplicateEmailError(email) from exc
    logger.info("User %s created (role=%s)", user.id, user.role.value)
    return user
