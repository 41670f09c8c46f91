from __future__ import annotations

import asyncio
from collections.abc import Callable, Mapping
from typing import Any

import httpx

from .auth.session_store import Session
from .auth.signature import sign
from .config import ClientConfig
from .constants import (
    ERROR_CODE_MARKER,
    LOGGER,
    PARAMETER_NAME_ACCESS_TOKEN,
    SESSION_EXPIRED_MARKER,
)
from .delivery import DeliveryContext, deliver, invoke
from .errors import (
    BadApiRequestError,
    OdnoklassnikiError,
    SessionExpiredError,
    TransportFailure,
    wrap_internal,
)
from .registry import Callback, ErrorCallback, PendingCallRegistry

RESERVED_PARAMETERS = ("sig", "application_key", "method", PARAMETER_NAME_ACCESS_TOKEN)


def classify_response(body: str) -> OdnoklassnikiError | None:
    if SESSION_EXPIRED_MARKER in body:
        return SessionExpiredError(body)
    if ERROR_CODE_MARKER in body:
        return BadApiRequestError(body)
    return None


def _redacted(url: httpx.URL) -> httpx.URL:
    for name in ("sig", PARAMETER_NAME_ACCESS_TOKEN):
        if name in url.params:
            url = url.copy_set_param(name, "***")
    return url


class ApiRequestDispatcher:
    def __init__(
        self,
        config: ClientConfig,
        session: Session,
        registry: PendingCallRegistry,
        *,
        client: httpx.AsyncClient,
    ) -> None:
        self.config = config
        self._session = session
        self._registry = registry
        self._client = client
        self._tasks: set[asyncio.Task] = set()

    @property
    def pending_count(self) -> int:
        return len(self._registry)

    def build_request(
        self, method: str, parameters: Mapping[str, str] | None = None
    ) -> httpx.Request:
        params = dict(parameters or {})
        conflicting = [name for name in RESERVED_PARAMETERS if name in params]
        if conflicting:
            raise ValueError(f"Reserved parameters cannot be passed: {', '.join(conflicting)}")

        # One snapshot signs and authorizes the call, even if a refresh lands meanwhile.
        access_token = self._session.require_access_token()
        params["sig"] = sign(
            method,
            parameters,
            access_token,
            self.config.public_key,
            self.config.secret_key,
        )
        params["application_key"] = self.config.public_key
        params["method"] = method
        params[PARAMETER_NAME_ACCESS_TOKEN] = access_token
        return self._client.build_request("GET", self.config.api_url, params=params)

    def send_request(
        self,
        method: str,
        parameters: Mapping[str, str] | None = None,
        on_success: Callable[[str], Any] | None = None,
        on_error: ErrorCallback | None = None,
        context: DeliveryContext | None = None,
    ) -> asyncio.Task | None:
        """Sign and dispatch an API call without blocking.

        Returns the task performing the call, or ``None`` when the request could
        not be built; in that case ``on_error`` has already been called.
        """
        try:
            loop = asyncio.get_running_loop()
            request = self.build_request(method, parameters)
            self._registry.add(request, Callback(on_success, on_error, context))
        except Exception as error:
            LOGGER.warning("Could not build API request %s: %s", method, error)
            if on_error is not None:
                on_error(wrap_internal(error))
            return None

        LOGGER.debug("API request %s %s", request.method, _redacted(request.url))
        task = loop.create_task(self._perform(request))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _perform(self, request: httpx.Request) -> None:
        try:
            response = await self._client.send(request)
            response.raise_for_status()
        except httpx.HTTPError as error:
            failure = TransportFailure(str(error))
            failure.__cause__ = error
            self._fail_directly(request, failure)
            return
        except Exception as error:
            self._fail_directly(request, wrap_internal(error))
            return

        callback = self._registry.pop(request)
        body = response.content.decode("utf-8", errors="replace")
        error = classify_response(body)
        if error is not None:
            LOGGER.info("API call %s failed: %s", request.url.params.get("method"), error.code)
            _deliver(callback, callback.on_error, error)
        else:
            _deliver(callback, callback.on_success, body)

    def _fail_directly(self, request: httpx.Request, error: Exception) -> None:
        # Transport failures skip the delivery context.
        callback = self._registry.pop(request)
        LOGGER.warning("API request to %s failed: %s", _redacted(request.url), error)
        if callback.on_error is not None:
            invoke(callback.on_error, error)


def _deliver(callback: Callback, fn: Callable[..., Any] | None, value: Any) -> None:
    if callback.context is None or fn is None:
        LOGGER.debug("Dropping API result with no continuation or delivery context")
        return
    deliver(callback.context, fn, value)
