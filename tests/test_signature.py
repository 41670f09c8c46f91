import hashlib

from oksdk.auth.signature import md5_hex, sign


def _md5(value: str) -> str:
    return hashlib.md5(value.encode("utf-8")).hexdigest()


def test_md5_hex_is_lowercase_hex() -> None:
    digest = md5_hex("abc")

    assert digest == "900150983cd24fb0d6963f7d28e17f72"


def test_sign_matches_known_construction() -> None:
    expected = _md5(
        "application_key=PUBKEY" "fields=name,pic" "method=users.getInfo" "uids=42"
        + _md5("TOKEN" + "SECRET")
    )

    signature = sign(
        "users.getInfo",
        {"uids": "42", "fields": "name,pic"},
        "TOKEN",
        "PUBKEY",
        "SECRET",
    )

    assert signature == expected


def test_sign_is_deterministic() -> None:
    params = {"uids": "1,2,3"}

    first = sign("users.getInfo", params, "TOKEN", "PUBKEY", "SECRET")
    second = sign("users.getInfo", params, "TOKEN", "PUBKEY", "SECRET")

    assert first == second


def test_sign_ignores_mapping_order() -> None:
    forward = {"a": "1", "b": "2", "c": "3"}
    backward = {"c": "3", "b": "2", "a": "1"}

    assert sign("m", forward, "T", "P", "S") == sign("m", backward, "T", "P", "S")


def test_sign_sorts_keys_ordinally() -> None:
    expected = _md5("B=1" "a=2" "application_key=P" "method=m" + _md5("TS"))

    assert sign("m", {"a": "2", "B": "1"}, "T", "P", "S") == expected


def test_sign_none_parameters_equals_empty() -> None:
    assert sign("m", None, "T", "P", "S") == sign("m", {}, "T", "P", "S")


def test_sign_does_not_mutate_parameters() -> None:
    params = {"uids": "42"}

    sign("users.getInfo", params, "TOKEN", "PUBKEY", "SECRET")

    assert params == {"uids": "42"}


def test_sign_depends_on_token_and_secret() -> None:
    base = sign("m", {"x": "1"}, "TOKEN", "P", "SECRET")

    assert sign("m", {"x": "1"}, "OTHER", "P", "SECRET") != base
    assert sign("m", {"x": "1"}, "TOKEN", "P", "OTHER") != base
    assert "SECRET" not in base
