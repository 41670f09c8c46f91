"""
Exception hierarchy for the Odnoklassniki SDK.

Every error carries a stable ``code`` string. Asynchronous failures never
propagate to the caller that issued the request; they are handed to its error
continuation instead.
"""

from __future__ import annotations

SDK_EXCEPTION_MESSAGE = (
    "Odnoklassniki sdk exception. Please, check your app info, request correctness "
    "and internet connection. If problem persists, contact SDK developers with error "
    "and your actions description."
)


class OdnoklassnikiError(Exception):
    """Base exception for all SDK errors."""

    code = "SDK_ERROR"


class ConfigurationError(OdnoklassnikiError):
    """Missing or invalid client configuration."""

    code = "CONFIGURATION"


class SessionExpiredError(OdnoklassnikiError):
    """The API rejected the access token (error code 102); refresh and retry."""

    code = "SESSION_EXPIRED"

    def __init__(self, body: str | None = None) -> None:
        super().__init__(self.code)
        self.body = body


class BadApiRequestError(OdnoklassnikiError):
    """The API answered with an error code other than 102."""

    code = "BAD_API_REQUEST"

    def __init__(self, body: str) -> None:
        super().__init__(f"{self.code}  {body}")
        self.body = body


class NoAccessTokenError(OdnoklassnikiError):
    """The token endpoint response did not contain the expected token fields."""

    code = "NO_ACCESS_TOKEN_SENT_BY_SERVER"

    def __init__(self, body: str | None = None) -> None:
        super().__init__(self.code)
        self.body = body


class TransportFailure(OdnoklassnikiError):
    code = "TRANSPORT_FAILURE"


class SdkInternalFailure(OdnoklassnikiError):
    """Generic wrapper; the underlying exception is kept as ``__cause__``."""

    code = "SDK_EXCEPTION"

    def __init__(self, message: str = SDK_EXCEPTION_MESSAGE) -> None:
        super().__init__(message)


class AuthorizationDeniedError(OdnoklassnikiError):
    """The authorization redirect carried an ``error`` parameter."""

    code = "AUTHORIZATION_DENIED"

    def __init__(self, error: str) -> None:
        super().__init__(error)
        self.error = error


class FlowInProgressError(OdnoklassnikiError):
    code = "FLOW_IN_PROGRESS"


class FlowSupersededError(OdnoklassnikiError):
    code = "FLOW_SUPERSEDED"


class NotAuthenticatedError(OdnoklassnikiError):
    code = "NOT_AUTHENTICATED"


class SessionStorageError(OdnoklassnikiError):
    code = "SESSION_STORAGE"


def wrap_internal(error: BaseException) -> SdkInternalFailure:
    wrapped = SdkInternalFailure()
    wrapped.__cause__ = error
    return wrapped
