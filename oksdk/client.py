"""
High-level Odnoklassniki client.

Owns the configuration, the token session, the pending-call registry, the
OAuth flow controller and the API dispatcher, and exposes session
persistence on top of a ``SessionStore``.

Example:
    sdk = OdnoklassnikiSDK(ClientConfig.from_env(), session_store=FileSessionStore())
    if not sdk.try_load_session():
        sdk.authorize(on_success, on_error, EventLoopDelivery(), navigator=webbrowser.open)
    body = await sdk.call("users.getCurrentUser")
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Mapping
from typing import Any

import httpx

from .api import ApiRequestDispatcher
from .auth.oauth import FlowKind, FlowState, Navigator, OAuthFlowController
from .auth.session_store import (
    MemorySessionStore,
    Session,
    SessionStore,
    clear_session,
    load_session,
    save_session,
)
from .config import ClientConfig
from .constants import LOGGER
from .delivery import DeliveryContext, EventLoopDelivery
from .registry import ErrorCallback, PendingCallRegistry


class OdnoklassnikiSDK:
    def __init__(
        self,
        config: ClientConfig,
        *,
        session_store: SessionStore | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.config = config
        self.session = Session()
        self.session_store = session_store or MemorySessionStore()
        self.registry = PendingCallRegistry()

        self._own_client = client is None
        self._client = client or httpx.AsyncClient()
        self.oauth = OAuthFlowController(
            config, self.session, client=self._client, session_store=self.session_store
        )
        self.api = ApiRequestDispatcher(config, self.session, self.registry, client=self._client)

    async def __aenter__(self) -> "OdnoklassnikiSDK":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._own_client:
            await self._client.aclose()

    @property
    def is_authenticated(self) -> bool:
        return self.session.is_authenticated

    def authorize(
        self,
        on_success: Callable[[], Any] | None = None,
        on_error: ErrorCallback | None = None,
        context: DeliveryContext | None = None,
        *,
        save_session: bool = True,
        navigator: Navigator | None = None,
    ) -> str:
        """Begin authorization; returns the URL the user must open.

        The host reports the browser redirect back through ``on_redirect``.
        """
        return self.oauth.start_authorization(
            on_success, on_error, context, save_session=save_session, navigator=navigator
        )

    def on_redirect(self, query: str) -> asyncio.Task | None:
        return self.oauth.on_authorization_redirect(query)

    def update_token(
        self,
        on_success: Callable[[], Any] | None = None,
        on_error: ErrorCallback | None = None,
        context: DeliveryContext | None = None,
        *,
        save_session: bool = True,
    ) -> asyncio.Task | None:
        return self.oauth.refresh_token(on_success, on_error, context, save_session=save_session)

    def send_request(
        self,
        method: str,
        parameters: Mapping[str, str] | None = None,
        on_success: Callable[[str], Any] | None = None,
        on_error: ErrorCallback | None = None,
        context: DeliveryContext | None = None,
    ) -> asyncio.Task | None:
        return self.api.send_request(method, parameters, on_success, on_error, context)

    async def call(self, method: str, parameters: Mapping[str, str] | None = None) -> str:
        """Awaitable form of ``send_request``; raises the error the call produced."""
        future = _make_future()
        self.send_request(
            method,
            parameters,
            lambda body: _settle(future, body),
            lambda error: _settle(future, error=error),
            EventLoopDelivery(future.get_loop()),
        )
        return await future

    async def refresh(self, *, save_session: bool = True) -> None:
        future = _make_future()
        self.update_token(
            lambda: _settle(future, None),
            lambda error: _settle(future, error=error),
            EventLoopDelivery(future.get_loop()),
            save_session=save_session,
        )
        await future

    def flow_state(self, kind: FlowKind = FlowKind.AUTH) -> FlowState:
        return self.oauth.state(kind)

    def save_session(self) -> None:
        """Write both tokens to the session store; raises ``SessionStorageError``."""
        save_session(self.session_store, self.config.settings_prefix, self.session)
        LOGGER.info("Session saved")

    def try_load_session(self) -> bool:
        """Load tokens from the store. ``True`` does not mean they are still valid."""
        loaded = load_session(self.session_store, self.config.settings_prefix, self.session)
        LOGGER.info("Session %s from store", "loaded" if loaded else "not found")
        return loaded

    def reset_session(self) -> None:
        clear_session(self.session_store, self.config.settings_prefix, self.session)
        LOGGER.info("Session reset")


def _make_future() -> asyncio.Future:
    return asyncio.get_running_loop().create_future()


def _settle(future: asyncio.Future, result: Any = None, *, error: Exception | None = None) -> None:
    # Transport failures arrive without marshaling, possibly off-loop.
    loop = future.get_loop()
    if error is not None:
        loop.call_soon_threadsafe(_set_exception, future, error)
    else:
        loop.call_soon_threadsafe(_set_result, future, result)


def _set_result(future: asyncio.Future, result: Any) -> None:
    if not future.done():
        future.set_result(result)


def _set_exception(future: asyncio.Future, error: Exception) -> None:
    if not future.done():
        future.set_exception(error)
