"""
Auth service: registration and login.

Both operations answer with ``{id, email, token}`` where the token is the
base64 credential pair described in ``blog_api.security``.  The token is
derived from the plaintext password supplied in the request and is never
stored.
"""
import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from blog_api.exceptions import DuplicateEmailError, InvalidCredentialsError, UserNotFoundError
from blog_api.models import RoleName, User
from blog_api.schemas import AuthRequest, AuthResponse, UserRegister
from blog_api.security import encode_token, hash_password, verify_password
from blog_api.services import role_service

logger = logging.getLogger(__name__)


async def email_exists(db: AsyncSession, email: str) -> bool:
    result = await db.execute(select(User.id).where(User.email == email))
    return result.first() is not None


async def register(db: AsyncSession, data: UserRegister) -> AuthResponse:
    """
    Persist a new user with the USER role and hand back its token.

    Raises DuplicateEmailError before anything is written when the email is
    already taken.
    """
    if await email_exists(db, data.email):
        logger.warning("Registration rejected: user with email %s already exists", data.email)
        raise DuplicateEmailError(data.email)

    user_role = await role_service.get_role_by_name(db, RoleName.USER)
    user = User(
        first_name=data.first_name,
        last_name=data.last_name,
        email=data.email,
        age=data.age,
        password=hash_password(data.password),
    )
    user.roles.append(user_role)
    db.add(user)
    try:
        await db.flush()
    except IntegrityError:
        # Lost a race with a concurrent registration; the unique index caught it.
        logger.warning("Registration rejected by unique index: email %s already exists", data.email)
        raise DuplicateEmailError(data.email)

    logger.info("User with email %s has been registered (id=%d)", user.email, user.id)
    return AuthResponse(id=user.id, email=data.email, token=encode_token(data.email, data.password))


async def login(db: AsyncSession, data: AuthRequest) -> AuthResponse:
    result = await db.execute(select(User).where(User.email == data.email))
    user = result.scalar_one_or_none()
    if user is None:
        logger.warning("Login rejected: user with email %s is not found", data.email)
        raise UserNotFoundError.by_email(data.email)

    if not verify_password(data.password, user.password):
        logger.warning("Login rejected: incorrect password for %s", data.email)
        raise InvalidCredentialsError()

    logger.info("User with email %s has logged in", data.email)
    return AuthResponse(id=user.id, email=data.email, token=encode_token(data.email, data.password))
