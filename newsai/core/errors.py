"""Exception types shared by the services and the HTTP layer."""


class NewsAIError(Exception):
    """Base class for errors raised by the application."""

    status_code = 500


class NotFoundError(NewsAIError):
    status_code = 404


class FetchError(NewsAIError):
    """A feed could not be downloaded or its document could not be parsed."""

    def __init__(self, url: str, reason: str):
        super().__init__(f"Failed to fetch feed {url}: {reason}")
        self.url = url
        self.reason = reason


class AIServiceError(NewsAIError):
    """The generative AI request failed."""

    status_code = 502


class AIConfigurationError(AIServiceError):
    status_code = 503


class AIResponseError(AIServiceError):
    """The AI service answered, but not with the shape we asked for."""


class AuthError(NewsAIError):
    status_code = 401


class InvalidCredentialsError(AuthError):
    def __init__(self, message: str = "Invalid credentials"):
        super().__init__(message)


class TokenError(AuthError):
    status_code = 403

    def __init__(self, message: str = "Invalid or expired token"):
        super().__init__(message)


class PermissionDeniedError(AuthError):
    status_code = 403

    def __init__(self, message: str = "Insufficient permissions"):
        super().__init__(message)


class UserExistsError(AuthError):
    status_code = 409

    def __init__(self, message: str = "Username already exists"):
        super().__init__(message)


class UserNotFoundError(AuthError):
    status_code = 404

    def __init__(self, message: str = "User not found"):
        super().__init__(message)


class DuplicateFeedError(NewsAIError):
    status_code = 400

    def __init__(self, message: str = "Feed source with this URL already exists"):
        super().__init__(message)
