"""
Domain errors raised by the service layer.

Each error carries the HTTP status it maps to; ``main.py`` registers a
single handler that renders any ``BlogApiError`` as a JSON body.
"""


class BlogApiError(Exception):
    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


# --- 404 ---

class UserNotFoundError(BlogApiError):
    status_code = 404

    @classmethod
    def by_id(cls, user_id: int) -> "UserNotFoundError":
        return cls(f"could not find user {user_id}")

    @classmethod
    def by_email(cls, email: str) -> "UserNotFoundError":
        return cls(f"User with email {email} is not found")


class ArticleNotFoundError(BlogApiError):
    status_code = 404

    def __init__(self, article_id: int) -> None:
        super().__init__(f"could not find article {article_id}")


# --- 409 ---

class DuplicateEmailError(BlogApiError):
    status_code = 409

    def __init__(self, email: str) -> None:
        super().__init__(f"User with email {email} already exists")


# --- 401 ---

class InvalidCredentialsError(BlogApiError):
    status_code = 401

    def __init__(self) -> None:
        super().__init__("Incorrect password")


class UnauthenticatedError(BlogApiError):
    status_code = 401


# --- 403 ---

class ForbiddenOwnershipError(BlogApiError):
    """The caller is authenticated (or anonymous) but neither owns the
    resource nor holds the ADMIN role."""

    status_code = 403


class SomeoneElseProfileError(ForbiddenOwnershipError):
    def __init__(self) -> None:
        super().__init__("It's someone else's profile. You can't modify him")


class SomeoneElseArticleError(ForbiddenOwnershipError):
    def __init__(self) -> None:
        super().__init__("It's someone else's article. You can't modify her")


# --- 500 ---

class RoleNotFoundError(BlogApiError):
    status_code = 500

    def __init__(self, name: str) -> None:
        super().__init__(f"Role {name} is not seeded")
