"""
Password hashing, the credential token codec and the ownership rule.

Token format
------------
``token = base64(email + ":" + plaintext_password)`` using the standard
alphabet with padding over UTF-8 bytes.  It is a reversible encoding in the
spirit of HTTP Basic credentials: no signature, no expiry, no server-side
state.
"""
import base64
import binascii

from passlib.context import CryptContext

from blog_api.config import settings
from blog_api.models import RoleName
from blog_api.schemas import Identity

pwd_context = CryptContext(schemes=settings.PASSWORD_SCHEMES, deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def encode_token(email: str, password: str) -> str:
    return base64.b64encode(f"{email}:{password}".encode("utf-8")).decode("ascii")


def decode_token(token: str) -> tuple[str, str] | None:
    """
    Split *token* back into ``(email, password)``.

    Returns None for anything that is not base64 of a UTF-8 ``email:password``
    pair.  The split happens on the first colon, so passwords may contain
    colons.
    """
    try:
        raw = base64.b64decode(token, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return None
    email, sep, password = raw.partition(":")
    if not sep or not email:
        return None
    return email, password


def is_owner_or_admin(identity: Identity | None, owner_id: int) -> bool:
    """
    Ownership rule shared by users and articles.

    An anonymous caller never passes.  Matching ids pass before the ADMIN
    role is consulted.
    """
    if identity is None:
        return False
    if identity.id == owner_id:
        return True
    return identity.has_role(RoleName.ADMIN)
