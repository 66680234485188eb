"""
User service: profile reads and owner-or-admin mutations.

Three explicit shapes cross the boundary: ``UserDto`` for the list view,
``UserAllFieldsDto`` for single-user reads and update results, and
``UserUpdate`` (all fields nullable) for partial updates.  The mapping
functions below list every field by hand; a null in ``UserUpdate`` always
means "keep the stored value".

Mutations take the caller's ``Identity`` as an argument.  The not-found
check runs before the ownership check, so a missing id answers 404 even
for a caller who could not have modified it.
"""
import logging

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from blog_api.cache import cache
from blog_api.exceptions import DuplicateEmailError, SomeoneElseProfileError, UserNotFoundError
from blog_api.models import Article, User
from blog_api.schemas import ArticleSummary, Identity, UserAllFieldsDto, UserDto, UserUpdate
from blog_api.security import hash_password, is_owner_or_admin
from blog_api.services.auth_service import email_exists

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Mapping helpers
# ---------------------------------------------------------------------------

def to_user_dto(user: User) -> UserDto:
    return UserDto(
        id=user.id,
        first_name=user.first_name,
        last_name=user.last_name,
        email=user.email,
        age=user.age,
    )


def to_user_all_fields_dto(user: User) -> UserAllFieldsDto:
    return UserAllFieldsDto(
        id=user.id,
        first_name=user.first_name,
        last_name=user.last_name,
        email=user.email,
        age=user.age,
        roles=sorted(user.role_names, key=lambda r: r.value),
        created_at=user.created_at,
        articles=[
            ArticleSummary(id=a.id, title=a.title, created_at=a.created_at)
            for a in user.articles
        ],
    )


def apply_user_update(user: User, data: UserUpdate) -> list[str]:
    """
    Copy every non-null field of *data* onto *user*.

    Returns the names of the fields that were written, for logging.
    """
    changed: list[str] = []
    if data.first_name is not None:
        user.first_name = data.first_name
        changed.append("first_name")
    if data.last_name is not None:
        user.last_name = data.last_name
        changed.append("last_name")
    if data.email is not None:
        user.email = data.email
        changed.append("email")
    if data.age is not None:
        user.age = data.age
        changed.append("age")
    if data.password is not None:
        user.password = hash_password(data.password)
        changed.append("password")
    return changed


async def _load_user(db: AsyncSession, user_id: int, with_articles: bool = True) -> User:
    # Deletion skips the articles: they are removed with a bulk DELETE and
    # must not be tracked by the session when the user row goes.
    options = [selectinload(User.roles)]
    if with_articles:
        options.append(selectinload(User.articles))
    # populate_existing: the caller's own row may already sit in the session
    # (loaded by get_current_user) with its collections left unloaded.
    q = (
        select(User)
        .where(User.id == user_id)
        .options(*options)
        .execution_options(populate_existing=True)
    )
    result = await db.execute(q)
    user = result.scalar_one_or_none()
    if user is None:
        logger.warning("User %d not found", user_id)
        raise UserNotFoundError.by_id(user_id)
    return user


def _check_owner(identity: Identity | None, user_id: int) -> None:
    if not is_owner_or_admin(identity, user_id):
        logger.warning(
            "User %s tried to modify profile %d",
            identity.id if identity else "<anonymous>", user_id,
        )
        raise SomeoneElseProfileError()


# ---------------------------------------------------------------------------
# Public service functions
# ---------------------------------------------------------------------------

async def get_users(db: AsyncSession) -> list[UserDto]:
    """Return all users, newest first.  Articles and roles are not loaded."""
    result = await db.execute(select(User).order_by(User.created_at.desc(), User.id.desc()))
    return [to_user_dto(u) for u in result.scalars().all()]


async def get_user(db: AsyncSession, user_id: int) -> UserAllFieldsDto:
    user = await _load_user(db, user_id)
    return to_user_all_fields_dto(user)


async def delete_user(db: AsyncSession, user_id: int, identity: Identity | None) -> None:
    """
    Delete a profile together with the articles it owns.

    Raises UserNotFoundError or SomeoneElseProfileError; nothing is
    deleted in either case.
    """
    user = await _load_user(db, user_id, with_articles=False)
    _check_owner(identity, user_id)

    await db.execute(delete(Article).where(Article.author_id == user_id))
    await db.delete(user)
    await db.flush()

    await cache.invalidate_all_articles()
    logger.info("User %d has been deleted by %d", user_id, identity.id)


async def update_user(
    db: AsyncSession, user_id: int, data: UserUpdate, identity: Identity | None
) -> UserAllFieldsDto:
    """
    Apply a partial update and return the resulting profile.

    A new email that belongs to a different user raises DuplicateEmailError.
    """
    user = await _load_user(db, user_id)
    _check_owner(identity, user_id)

    if data.email is not None and data.email != user.email and await email_exists(db, data.email):
        logger.warning("Update of user %d rejected: email %s already exists", user_id, data.email)
        raise DuplicateEmailError(data.email)

    changed = apply_user_update(user, data)
    try:
        await db.flush()
    except IntegrityError:
        logger.warning("Update of user %d rejected by unique index: email %s already exists", user_id, data.email)
        raise DuplicateEmailError(data.email)

    if changed:
        await cache.invalidate_all_articles()
    logger.info("User %d updated by %d (fields: %s)", user_id, identity.id, ", ".join(changed) or "none")
    return to_user_all_fields_dto(user)
