from datetime import datetime
from typing import Annotated

from email_validator import EmailNotValidError, validate_email
from pydantic import AfterValidator, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from blog_api.models import RoleName


def _check_email(value: str) -> str:
    # Format check only; the address is kept exactly as submitted.
    try:
        validate_email(value, check_deliverability=False)
    except EmailNotValidError as exc:
        raise ValueError(f"value is not a valid email address: {exc}") from exc
    return value


Email = Annotated[str, Field(max_length=255), AfterValidator(_check_email)]


class CamelModel(BaseModel):
    """camelCase on the wire, snake_case in Python; both accepted on input."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --- Identity ---

class Identity(BaseModel):
    """The authenticated caller of the current request."""

    id: int
    email: str
    roles: frozenset[RoleName] = frozenset()
    model_config = ConfigDict(frozen=True)

    def has_role(self, role: RoleName) -> bool:
        return role in self.roles


# --- Auth ---

class AuthRequest(CamelModel):
    email: Email
    password: str = Field(min_length=1, max_length=100)


class AuthResponse(CamelModel):
    id: int
    email: str
    token: str


# --- User ---

class UserRegister(CamelModel):
    first_name: str = Field(min_length=2, max_length=40)
    last_name: str = Field(min_length=2, max_length=40)
    email: Email
    age: int | None = Field(None, ge=0, le=200)
    password: str = Field(min_length=4, max_length=100)


class UserUpdate(CamelModel):
    """Partial update: a field left out or sent as null is not touched."""

    first_name: str | None = Field(None, min_length=2, max_length=40)
    last_name: str | None = Field(None, min_length=2, max_length=40)
    email: Email | None = None
    age: int | None = Field(None, ge=0, le=200)
    password: str | None = Field(None, min_length=4, max_length=100)


class UserDto(CamelModel):
    id: int
    first_name: str
    last_name: str
    email: str
    age: int | None = None


class ArticleSummary(CamelModel):
    id: int
    title: str
    created_at: datetime | None = None


class UserAllFieldsDto(UserDto):
    roles: list[RoleName] = []
    created_at: datetime | None = None
    articles: list[ArticleSummary] = []


# --- Article ---

class ArticleCreate(CamelModel):
    title: str = Field(min_length=1, max_length=200)
    description: str = Field(min_length=1)


class ArticleUpdate(CamelModel):
    title: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = Field(None, min_length=1)


class ArticleDto(CamelModel):
    id: int
    title: str
    description: str
    created_at: datetime | None = None
    author_id: int
    author: UserDto | None = None


# --- Pagination ---

class PaginatedArticles(CamelModel):
    items: list[ArticleDto]
    total: int
    page: int
    page_size: int
    pages: int


# --- Metrics ---

class MetricsResponse(CamelModel):
    total_users: int
    total_articles: int
    total_admins: int
    avg_articles_per_user: float
    cache_info: dict = {}


# --- Errors ---

class FieldError(CamelModel):
    field: str
    message: str


class ErrorResponse(CamelModel):
    message: str
    error_type: str
    timestamp: datetime
    errors: list[FieldError] | None = None
