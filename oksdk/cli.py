from __future__ import annotations

import argparse
import asyncio
import sys
import urllib.parse
import webbrowser
from collections.abc import Sequence

from .auth.session_store import FileSessionStore
from .client import OdnoklassnikiSDK
from .config import ClientConfig
from .delivery import EventLoopDelivery
from .env import load_env, setup_logging
from .errors import OdnoklassnikiError, SessionExpiredError

DEFAULT_SESSION_FILE = ".ok_session.json"


def parse_parameters(pairs: Sequence[str]) -> dict[str, str]:
    parameters: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise ValueError(f"Parameters must look like key=value, got {pair!r}")
        parameters[key] = value
    return parameters


def redirect_query(redirect: str) -> str:
    parsed = urllib.parse.urlparse(redirect)
    if parsed.scheme and parsed.netloc:
        return parsed.query
    return redirect.lstrip("?")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="oksdk", description="Odnoklassniki API client")
    parser.add_argument(
        "--session-file",
        default=DEFAULT_SESSION_FILE,
        help=f"Where tokens are stored (default: {DEFAULT_SESSION_FILE})",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    authorize = commands.add_parser("authorize-url", help="Print the authorization URL")
    authorize.add_argument("--open", action="store_true", help="Open it in a browser")

    exchange = commands.add_parser("exchange", help="Exchange a redirect for tokens")
    exchange.add_argument("redirect", help="Redirect URL or its query string")

    commands.add_parser("refresh", help="Refresh the stored access token")
    commands.add_parser("reset", help="Forget the stored tokens")

    call = commands.add_parser("call", help="Call an API method")
    call.add_argument("method", help="API method, e.g. users.getCurrentUser")
    call.add_argument("params", nargs="*", help="key=value parameters")
    return parser


async def _exchange(sdk: OdnoklassnikiSDK, redirect: str) -> None:
    loop = asyncio.get_running_loop()
    done: asyncio.Future = loop.create_future()
    sdk.authorize(
        lambda: done.set_result(None),
        done.set_exception,
        EventLoopDelivery(loop),
    )
    if sdk.on_redirect(redirect_query(redirect)) is None:
        # An error redirect is delivered on the next loop iteration.
        await asyncio.sleep(0)
        if not done.done():
            raise ValueError("Redirect does not contain an authorization code.")
    await done


async def _run(args: argparse.Namespace, config: ClientConfig) -> int:
    store = FileSessionStore(args.session_file)
    async with OdnoklassnikiSDK(config, session_store=store) as sdk:
        if args.command == "authorize-url":
            url = sdk.oauth.start_authorization(
                navigator=webbrowser.open if args.open else None
            )
            print(url)
            return 0

        if args.command == "exchange":
            await _exchange(sdk, args.redirect)
            print("Authorized; tokens saved to", args.session_file)
            return 0

        if args.command == "reset":
            sdk.reset_session()
            return 0

        if not sdk.try_load_session():
            print("No stored session; run `oksdk exchange` first.", file=sys.stderr)
            return 1

        if args.command == "refresh":
            await sdk.refresh()
            print("Access token refreshed")
            return 0

        try:
            print(await sdk.call(args.method, parse_parameters(args.params)))
        except SessionExpiredError:
            print("Session expired; run `oksdk refresh` and retry.", file=sys.stderr)
            return 2
        return 0


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    load_env()
    setup_logging()
    try:
        config = ClientConfig.from_env()
        return asyncio.run(_run(args, config))
    except (OdnoklassnikiError, ValueError) as error:
        print(f"error: {error}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
