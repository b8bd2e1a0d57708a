import hashlib

import pytest

from chap import CHALLENGE_LENGTH, ChapResponse, build_chap_response, generate_challenge
from radius_errors import EntropyError

CHALLENGE = bytes(range(16))


def test_response_is_identifier_plus_md5():
    response = build_chap_response(1, "secret123", CHALLENGE)
    value = response.value
    assert len(value) == 17
    assert value[0] == 1
    assert value[1:] == hashlib.md5(b"\x01" + b"secret123" + CHALLENGE).digest()


def test_response_is_deterministic():
    first = build_chap_response(1, "secret123", CHALLENGE)
    second = build_chap_response(1, "secret123", CHALLENGE)
    assert first == second


def test_distinct_challenges_give_distinct_digests():
    other = bytes(reversed(CHALLENGE))
    assert build_chap_response(1, "pw", CHALLENGE).digest != build_chap_response(1, "pw", other).digest


def test_identifier_is_part_of_the_digest():
    assert build_chap_response(1, "pw", CHALLENGE).digest != build_chap_response(2, "pw", CHALLENGE).digest


def test_non_ascii_password_is_hashed_as_utf8():
    response = build_chap_response(1, "pässwörd", CHALLENGE)
    assert response.digest == hashlib.md5(b"\x01" + "pässwörd".encode("utf-8") + CHALLENGE).digest()


@pytest.mark.parametrize("challenge", [b"", b"\x00" * 15, b"\x00" * 17])
def test_wrong_challenge_length_is_rejected(challenge):
    with pytest.raises(ValueError):
        build_chap_response(1, "pw", challenge)


def test_chap_response_checks_digest_length():
    with pytest.raises(ValueError):
        ChapResponse(1, b"\x00" * 15)
    with pytest.raises(ValueError):
        ChapResponse(256, b"\x00" * 16)


def test_generated_challenges_are_fresh():
    first = generate_challenge()
    second = generate_challenge()
    assert len(first) == len(second) == CHALLENGE_LENGTH == 16
    assert first != second


def test_entropy_failure_is_reported(monkeypatch):
    def broken(n):
        raise OSError("no entropy")

    monkeypatch.setattr("chap.secrets.token_bytes", broken)
    with pytest.raises(EntropyError):
        generate_challenge()
