from __future__ import annotations

import hashlib
from collections.abc import Mapping


def md5_hex(value: str) -> str:
    return hashlib.md5(value.encode("utf-8")).hexdigest()


def sign(
    method: str,
    parameters: Mapping[str, str] | None,
    access_token: str,
    public_key: str,
    secret_key: str,
) -> str:
    """Compute the ``sig`` parameter for an API call.

    Entries are concatenated as ``key=value`` in ordinal key order, followed by
    the digest of ``access_token + secret_key``. The secret key itself never
    leaves the client.
    """
    signed = dict(parameters or {})
    signed["application_key"] = public_key
    signed["method"] = method

    payload = "".join(f"{key}={signed[key]}" for key in sorted(signed))
    return md5_hex(payload + md5_hex(access_token + secret_key))
