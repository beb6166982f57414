"""Domain exceptions raised by the service layer.

Routers never translate these by hand: ``app.main`` registers one handler
per family (not found, conflict, invalid argument) that maps the
exception onto an HTTP status and a JSON body carrying ``context``.
"""


class NewsroomError(Exception):
    """Base class for every failure the service layer raises on purpose."""

    code = "error"

    def __init__(self, message: str, **context):
        self.message = message
        self.context = context
        super().__init__(message)


# ---------------------------------------------------------------------------
# 404
# ---------------------------------------------------------------------------

class NotFoundError(NewsroomError):
    entity = "Entity"
    code = "not_found"

    def __init__(self, entity_id: int):
        self.entity_id = entity_id
        super().__init__(f"{self.entity} {entity_id} not found", id=entity_id)


class ArticleNotFoundError(NotFoundError):
    entity = "Article"


class CategoryNotFoundError(NotFoundError):
    entity = "Category"


class UserNotFoundError(NotFoundError):
    entity = "User"


# ---------------------------------------------------------------------------
# 409
# ---------------------------------------------------------------------------

class ConflictError(NewsroomError):
    code = "conflict"


class DuplicateSlugError(ConflictError):
    code = "duplicate_slug"

    def __init__(self, slug: str):
        self.slug = slug
        super().__init__(f"An article with slug '{slug}' already exists", slug=slug)


class DuplicateCategoryNameError(ConflictError):
    code = "duplicate_name"

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"A category named '{name}' already exists", name=name)


class CategoryInUseError(ConflictError):
    code = "category_in_use"

    def __init__(self, category_id: int, article_count: int | None = None):
        self.category_id = category_id
        self.article_count = article_count
        if article_count is None:
            message = f"Category {category_id} is still used by articles"
        else:
            message = f"Category {category_id} is still used by {article_count} article(s)"
        super().__init__(message, id=category_id, article_count=article_count)


class DuplicateEmailError(ConflictError):
    code = "duplicate_email"

    def __init__(self, email: str):
        self.email = email
        super().__init__(f"A user with email '{email}' already exists", email=email)


# ---------------------------------------------------------------------------
# 400
# ---------------------------------------------------------------------------

class InvalidArgumentError(NewsroomError):
    code = "invalid_argument"

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(message, field=field)
