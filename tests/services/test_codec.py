# mypy: ignore-errors
"""Tests for the content codec and digests."""

import pytest
from cryptography.fernet import Fernet

from ventbuddy_stage.services.codec import (
    DIGEST_LENGTH,
    ContentCodec,
    derive_content_key,
    make_preview,
)
from ventbuddy_stage.services.errors import DecodeFailed


@pytest.fixture()
def codec() -> ContentCodec:
    return ContentCodec(Fernet.generate_key())


@pytest.mark.parametrize(
    "text",
    [
        "",
        "plain ascii text",
        "Ünïcödé ✓ 日本語 🙂",
        "x" * 10_000,
    ],
)
def test_round_trip(codec, text) -> None:
    """Decoding an encoded string returns the input text."""
    assert codec.decode(codec.encode(text)) == text


def test_encoded_form_hides_plaintext(codec) -> None:
    assert "secret vent" not in codec.encode("secret vent")


def test_tampered_token_fails_to_decode(codec) -> None:
    token = codec.encode("secret vent")
    replacement = "A" if token[20] != "A" else "B"
    tampered = token[:20] + replacement + token[21:]
    with pytest.raises(DecodeFailed):
        codec.decode(tampered)


def test_token_from_other_key_fails(codec) -> None:
    other = ContentCodec(Fernet.generate_key())
    with pytest.raises(DecodeFailed):
        codec.decode(other.encode("hello"))


def test_garbage_token_fails(codec) -> None:
    with pytest.raises(DecodeFailed):
        codec.decode("not-a-token")


def test_invalid_key_rejected() -> None:
    with pytest.raises(ValueError):
        ContentCodec(b"too-short")


def test_derived_key_is_stable() -> None:
    first = ContentCodec(derive_content_key("secret"))
    second = ContentCodec(derive_content_key("secret"))
    assert second.decode(first.encode("same key")) == "same key"


def test_hash_format_and_verify() -> None:
    digest = ContentCodec.hash("hello")
    assert digest.startswith("0x")
    assert len(digest) == DIGEST_LENGTH
    assert digest == "0x2cf24dba5fb0a30e26e83b2ac5b9e29e1b161e5c1fa7425e73043362938b9824"
    assert ContentCodec.verify("hello", "0x" + digest[2:].upper())
    assert not ContentCodec.verify("hello!", digest)


def test_make_preview_truncates() -> None:
    assert make_preview("short", length=10) == "short"
    assert make_preview("abcdefghijkl", length=10) == "abcdefghij..."
