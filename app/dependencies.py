import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, HTTPException, Query, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError

from app.config import settings
from app.errors import InvalidArgumentError
from app.models import Role
from app.schemas import ArticleListQuery
from app.security import decode_token

logger = logging.getLogger(__name__)
bearer_scheme = HTTPBearer(auto_error=False)


# ---------------------------------------------------------------------------
# Principal
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Principal:
    """The authenticated caller, as asserted by the bearer token."""

    id: int
    role: Role


async def get_current_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Principal:
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        payload = decode_token(credentials.credentials)
        if payload.get("type") != "access":
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token type")
        principal = Principal(id=int(payload["sub"]), role=Role(payload["role"]))
    except (JWTError, KeyError, ValueError):
        logger.info("Rejected bearer token", extra={"event": "access_token_invalid"})
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return principal


def require_roles(*roles: Role):
    """Dependency factory: the caller must hold one of *roles*."""

    async def _check(principal: Principal = Depends(get_current_principal)) -> Principal:
        if principal.role not in roles:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient role")
        return principal

    return _check


require_staff = require_roles(Role.EDITOR, Role.ADMIN)
require_admin = require_roles(Role.ADMIN)
require_user = require_roles(Role.USER, Role.EDITOR, Role.ADMIN)


# ---------------------------------------------------------------------------
# Listing parameters
# ---------------------------------------------------------------------------

def _parse_category_ids(raw: Optional[str]) -> list[int]:
    if not raw:
        return []
    try:
        return [int(part) for part in raw.split(",") if part.strip()]
    except ValueError:
        raise InvalidArgumentError("categories", "categories must be a comma-separated list of ids")


def _parse_int(raw: Optional[str], field: str, default: int) -> int:
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        raise InvalidArgumentError(field, f"{field} must be an integer")


_TRUE = frozenset({"true", "1", "yes", "on"})
_FALSE = frozenset({"false", "0", "no", "off"})


def parse_published(
    published: Optional[str] = Query(None, description="Omit to list drafts and published."),
) -> Optional[bool]:
    """Dependency for the ``published`` filter of the staff listing."""
    if published is None or not published.strip():
        return None
    value = published.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise InvalidArgumentError("published", "published must be true or false")


class ListingParams:
    """
    Reusable FastAPI dependency that parses article listing query
    parameters into an ``ArticleListQuery``.

    Numbers arrive as raw strings so that malformed input is reported as
    ``InvalidArgumentError`` (HTTP 400) like every other listing error.
    Range checks on *page* / *page_size* are left to the service layer,
    which rejects values below 1 and clamps *page_size* to
    ``settings.MAX_PAGE_SIZE``.

    Attributes
    ----------
    page:
        1-based page number.
    page_size:
        Number of items per page (``pageSize`` or ``page_size``).
    sort:
        One of ``newest``, ``oldest``, ``views``, ``likes``.
    categories:
        Comma-separated category ids; an article matches if it is in any.
    search:
        Case-insensitive substring matched against title, content,
        excerpt, category name and author name.
    """

    def __init__(
        self,
        page: Optional[str] = Query(None, description="Page number (1-based)."),
        page_size: Optional[str] = Query(None, alias="pageSize", description="Items per page."),
        page_size_snake: Optional[str] = Query(None, alias="page_size", include_in_schema=False),
        sort: str = Query("newest", description="newest | oldest | views | likes"),
        categories: Optional[str] = Query(None, description="Comma-separated category ids."),
        search: Optional[str] = Query(None, description="Text to search for."),
    ) -> None:
        self.page = _parse_int(page, "page", 1)
        if page_size is None:
            page_size = page_size_snake
        self.page_size = _parse_int(page_size, "page_size", settings.DEFAULT_PAGE_SIZE)
        self.sort = sort
        self.category_ids = _parse_category_ids(categories)
        self.search = search

    def to_query(self, is_published: Optional[bool]) -> ArticleListQuery:
        return ArticleListQuery(
            page=self.page,
            page_size=self.page_size,
            sort=self.sort,
            category_ids=self.category_ids,
            is_published=is_published,
            search=self.search,
        )
