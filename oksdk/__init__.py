"""
Odnoklassniki API client.

Public API:
    OdnoklassnikiSDK: Facade owning session, OAuth flows and API dispatch
    ClientConfig: Immutable application credentials
    OAuthFlowController, FlowKind, FlowState: Authorization/refresh flows
    ApiRequestDispatcher: Signed asynchronous API calls
    PendingCallRegistry, Callback: In-flight call correlation
    sign: Request signature
    Session, SessionStore, MemorySessionStore, FileSessionStore: Token pair
    InlineDelivery, EventLoopDelivery, QueueDelivery: Delivery contexts
"""

from .api import ApiRequestDispatcher, classify_response
from .auth.oauth import FlowKind, FlowState, OAuthFlowController, build_authorization_url
from .auth.session_store import FileSessionStore, MemorySessionStore, Session, SessionStore
from .auth.signature import sign
from .client import OdnoklassnikiSDK
from .config import ClientConfig
from .constants import APP_VERSION
from .delivery import DeliveryContext, EventLoopDelivery, InlineDelivery, QueueDelivery
from .errors import (
    AuthorizationDeniedError,
    BadApiRequestError,
    ConfigurationError,
    FlowInProgressError,
    FlowSupersededError,
    NoAccessTokenError,
    NotAuthenticatedError,
    OdnoklassnikiError,
    SdkInternalFailure,
    SessionExpiredError,
    SessionStorageError,
    TransportFailure,
)
from .registry import Callback, PendingCallRegistry

__version__ = APP_VERSION

__all__ = [
    "OdnoklassnikiSDK",
    "ClientConfig",
    "OAuthFlowController",
    "FlowKind",
    "FlowState",
    "build_authorization_url",
    "ApiRequestDispatcher",
    "classify_response",
    "PendingCallRegistry",
    "Callback",
    "sign",
    "Session",
    "SessionStore",
    "MemorySessionStore",
    "FileSessionStore",
    "DeliveryContext",
    "InlineDelivery",
    "EventLoopDelivery",
    "QueueDelivery",
    "OdnoklassnikiError",
    "ConfigurationError",
    "SessionExpiredError",
    "BadApiRequestError",
    "NoAccessTokenError",
    "TransportFailure",
    "SdkInternalFailure",
    "AuthorizationDeniedError",
    "FlowInProgressError",
    "FlowSupersededError",
    "NotAuthenticatedError",
    "SessionStorageError",
]
