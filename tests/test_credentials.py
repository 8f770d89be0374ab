"""Unit tests for auth/credentials.py.

Covers:
- The configured secret verifies; near misses, prefixes, case changes and
  long strings sharing a 72-byte prefix do not (bcrypt truncation guard)
- Construction without a secret is a configuration fault
"""

import pytest

from auth.credentials import CredentialVerifier

SECRET = "s3cret-Pa55word"


@pytest.fixture(scope="module")
def verifier() -> CredentialVerifier:
    return CredentialVerifier(SECRET, rounds=4)


def test_configured_secret_verifies(verifier):
    assert verifier.verify(SECRET) is True


@pytest.mark.parametrize(
    "submitted",
    [
        "",
        "s3cret",
        "s3cret-Pa55wor",
        "s3cret-Pa55word ",
        " s3cret-Pa55word",
        "S3CRET-PA55WORD",
        "s3cret-Pa55wore",
        "completely different",
    ],
)
def test_other_strings_do_not_verify(verifier, submitted):
    assert verifier.verify(submitted) is False


def test_non_string_input_is_rejected(verifier):
    assert verifier.verify(None) is False  # type: ignore[arg-type]


def test_long_secrets_are_compared_in_full():
    """Two 100-char secrets that share their first 80 chars must not match.

    Raw bcrypt ignores everything after byte 72; the SHA-256 pre-hash makes
    every byte count.
    """
    long_secret = "a" * 80 + "b" * 20
    v = CredentialVerifier(long_secret, rounds=4)
    assert v.verify(long_secret) is True
    assert v.verify("a" * 80 + "c" * 20) is False


def test_unicode_secret():
    v = CredentialVerifier("pässwörd-密码", rounds=4)
    assert v.verify("pässwörd-密码") is True
    assert v.verify("passwort-密码") is False


def test_empty_secret_is_a_configuration_fault():
    with pytest.raises(ValueError):
        CredentialVerifier("")
