"""
OAuth 2.0 flow controller for Odnoklassniki.

Two independent single-slot flows are tracked: authorization (code grant,
started by ``start_authorization`` and completed by the browser redirect) and
update (refresh-token grant). A flow that is already exchanging its token
rejects a second start instead of dropping the earlier caller.
"""

from __future__ import annotations

import asyncio
import enum
import re
import threading
import urllib.parse
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import httpx

from ..config import ClientConfig
from ..constants import (
    FORM_CONTENT_TYPE,
    LOGGER,
    PARAMETER_NAME_ACCESS_TOKEN,
    PARAMETER_NAME_REFRESH_TOKEN,
)
from ..delivery import DeliveryContext, deliver
from ..errors import (
    AuthorizationDeniedError,
    FlowInProgressError,
    FlowSupersededError,
    NoAccessTokenError,
    OdnoklassnikiError,
    TransportFailure,
    wrap_internal,
)
from ..registry import ErrorCallback
from .session_store import Session, SessionStore, save_session

Navigator = Callable[[str], Any]


class FlowKind(enum.Enum):
    AUTH = "auth"
    UPDATE = "update"


class FlowState(enum.Enum):
    IDLE = "idle"
    AWAITING_REDIRECT = "awaiting_redirect"
    EXCHANGING_TOKEN = "exchanging_token"
    AUTHENTICATED = "authenticated"
    FAILED = "failed"


@dataclass(frozen=True)
class AuthCallback:
    on_success: Callable[[], Any] | None
    on_error: ErrorCallback | None
    context: DeliveryContext | None
    save_session: bool = True


@dataclass
class _FlowSlot:
    state: FlowState = FlowState.IDLE
    callback: AuthCallback | None = None


def build_authorization_url(config: ClientConfig) -> str:
    query = [
        ("client_id", config.application_id),
        ("scope", config.permissions),
        ("response_type", "code"),
        ("redirect_uri", config.redirect_url),
        ("layout", "m"),
    ]
    return f"{config.authorize_url}?{urllib.parse.urlencode(query)}"


def authorization_code_body(config: ClientConfig, code: str) -> str:
    return urllib.parse.urlencode(
        [
            ("code", code),
            ("redirect_uri", config.redirect_url),
            ("grant_type", "authorization_code"),
            ("client_id", config.application_id),
            ("client_secret", config.secret_key),
        ]
    )


def refresh_token_body(config: ClientConfig, refresh_token: str) -> str:
    return urllib.parse.urlencode(
        [
            ("refresh_token", refresh_token),
            ("grant_type", "refresh_token"),
            ("client_id", config.application_id),
            ("client_secret", config.secret_key),
        ]
    )


def extract_token_field(body: str, name: str) -> str | None:
    """Return the string value of ``"name":"value"`` in ``body``, if present."""
    match = re.search(rf'"{re.escape(name)}"\s*:\s*"([^"]*)"', body)
    if match is None or not match.group(1):
        return None
    return match.group(1)


def parse_redirect(query: str) -> tuple[str | None, str | None]:
    """Split a redirect query into ``(code, error)``.

    The code runs to the end of the string; the provider puts it last.
    """
    code_index = query.find("code=")
    if code_index != -1:
        return query[code_index + len("code="):], None
    error_index = query.find("error=")
    if error_index != -1:
        return None, query[error_index + len("error="):]
    return None, None


class OAuthFlowController:
    def __init__(
        self,
        config: ClientConfig,
        session: Session,
        *,
        client: httpx.AsyncClient,
        session_store: SessionStore | None = None,
    ) -> None:
        self.config = config
        self._session = session
        self._client = client
        self._store = session_store
        self._lock = threading.Lock()
        self._slots = {kind: _FlowSlot() for kind in FlowKind}
        self._tasks: set[asyncio.Task] = set()

    def state(self, kind: FlowKind) -> FlowState:
        with self._lock:
            return self._slots[kind].state

    def start_authorization(
        self,
        on_success: Callable[[], Any] | None = None,
        on_error: ErrorCallback | None = None,
        context: DeliveryContext | None = None,
        *,
        save_session: bool = True,
        navigator: Navigator | None = None,
    ) -> str:
        url = build_authorization_url(self.config)
        callback = AuthCallback(on_success, on_error, context, save_session)
        superseded: AuthCallback | None = None

        with self._lock:
            slot = self._slots[FlowKind.AUTH]
            if slot.state is FlowState.EXCHANGING_TOKEN:
                rejected = True
            else:
                rejected = False
                if slot.state is FlowState.AWAITING_REDIRECT:
                    superseded = slot.callback
                slot.callback = callback
                slot.state = FlowState.AWAITING_REDIRECT

        if rejected:
            LOGGER.warning("Authorization requested while a code exchange is running")
            _deliver_error(callback, FlowInProgressError("Authorization already in progress."))
            return url

        if superseded is not None:
            _deliver_error(
                superseded, FlowSupersededError("Authorization restarted by a newer request.")
            )

        LOGGER.info("Starting authorization for application %s", self.config.application_id)
        if navigator is not None:
            navigator(url)
        return url

    def on_authorization_redirect(self, query: str) -> asyncio.Task | None:
        code, error = parse_redirect(query)
        if code is None and error is None:
            return None

        # Each authorization accepts one redirect; its code is single-use.
        with self._lock:
            slot = self._slots[FlowKind.AUTH]
            state = slot.state
            accepted = state in (FlowState.IDLE, FlowState.AWAITING_REDIRECT)
            if accepted and code is not None:
                slot.state = FlowState.EXCHANGING_TOKEN

        if not accepted:
            LOGGER.warning("Ignoring authorization redirect in state %s", state.value)
            return None

        if code is not None:
            LOGGER.info("Authorization code received; exchanging for tokens")
            return self._spawn(FlowKind.AUTH, code)

        LOGGER.warning("Authorization denied: %s", error)
        self._fail(FlowKind.AUTH, AuthorizationDeniedError(error))
        return None

    def refresh_token(
        self,
        on_success: Callable[[], Any] | None = None,
        on_error: ErrorCallback | None = None,
        context: DeliveryContext | None = None,
        *,
        save_session: bool = True,
    ) -> asyncio.Task | None:
        callback = AuthCallback(on_success, on_error, context, save_session)
        with self._lock:
            slot = self._slots[FlowKind.UPDATE]
            rejected = slot.state is FlowState.EXCHANGING_TOKEN
            if not rejected:
                slot.callback = callback
                slot.state = FlowState.EXCHANGING_TOKEN

        if rejected:
            LOGGER.warning("Token refresh requested while another refresh is running")
            _deliver_error(callback, FlowInProgressError("Token refresh already in progress."))
            return None

        LOGGER.info("Refreshing access token")
        return self._spawn(FlowKind.UPDATE, None)

    def _spawn(self, kind: FlowKind, code: str | None) -> asyncio.Task | None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError as error:
            self._fail(kind, wrap_internal(error))
            return None

        task = loop.create_task(self._exchange(kind, code))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _exchange(self, kind: FlowKind, code: str | None) -> None:
        try:
            if kind is FlowKind.AUTH:
                body = authorization_code_body(self.config, code or "")
            else:
                body = refresh_token_body(self.config, self._session.require_refresh_token())

            response = await self._client.post(
                self.config.token_url,
                content=body.encode("utf-8"),
                headers={"Content-Type": FORM_CONTENT_TYPE},
            )
            response.raise_for_status()
            self._apply_token_response(kind, response.text)
        except OdnoklassnikiError as error:
            self._fail(kind, error)
            return
        except httpx.HTTPError as error:
            failure = TransportFailure(str(error))
            failure.__cause__ = error
            self._fail(kind, failure)
            return
        except Exception as error:
            self._fail(kind, wrap_internal(error))
            return

        with self._lock:
            slot = self._slots[kind]
            slot.state = FlowState.AUTHENTICATED
            callback, slot.callback = slot.callback, None

        LOGGER.info("Token exchange (%s) succeeded", kind.value)
        if callback is not None and callback.context is not None and callback.on_success is not None:
            deliver(callback.context, callback.on_success)

    def _apply_token_response(self, kind: FlowKind, body: str) -> None:
        access_token = extract_token_field(body, PARAMETER_NAME_ACCESS_TOKEN)
        if access_token is None:
            raise NoAccessTokenError(body)

        if kind is FlowKind.AUTH:
            refresh_token = extract_token_field(body, PARAMETER_NAME_REFRESH_TOKEN)
            if refresh_token is None:
                raise NoAccessTokenError(body)
            self._session.set_tokens(access_token, refresh_token)
        else:
            self._session.update_access_token(access_token)

        with self._lock:
            callback = self._slots[kind].callback
        if callback is not None and callback.save_session and self._store is not None:
            save_session(self._store, self.config.settings_prefix, self._session)

    def _fail(self, kind: FlowKind, error: Exception) -> None:
        with self._lock:
            slot = self._slots[kind]
            slot.state = FlowState.FAILED
            callback, slot.callback = slot.callback, None

        LOGGER.warning("Token flow (%s) failed: %s", kind.value, error)
        if callback is not None:
            _deliver_error(callback, error)


def _deliver_error(callback: AuthCallback, error: Exception) -> None:
    if callback.on_error is not None and callback.context is not None:
        deliver(callback.context, callback.on_error, error)
