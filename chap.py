import hashlib
import logging
import secrets
from dataclasses import dataclass

from radius_errors import EntropyError

logger = logging.getLogger(__name__)

CHAP_IDENTIFIER = 1
# CHAP-Challenge is sized to the MD5 digest
CHALLENGE_LENGTH = 16


@dataclass(frozen=True)
class ChapResponse:
    identifier: int
    digest: bytes

    def __post_init__(self):
        if not 0 <= self.identifier <= 0xFF:
            raise ValueError(f"CHAP identifier out of range: {self.identifier}")
        if len(self.digest) != CHALLENGE_LENGTH:
            raise ValueError(
                f"CHAP digest must be {CHALLENGE_LENGTH} bytes, got {len(self.digest)}")

    @property
    def value(self) -> bytes:
        """CHAP-Password attribute value: identifier octet followed by the digest"""
        return bytes([self.identifier]) + self.digest


def generate_challenge() -> bytes:
    try:
        challenge = secrets.token_bytes(CHALLENGE_LENGTH)
    except (OSError, NotImplementedError) as e:
        raise EntropyError(f"unable to generate CHAP challenge: {e}") from e
    logger.debug("Generated %d byte CHAP challenge", len(challenge))
    return challenge


def build_chap_response(identifier: int, password: str, challenge: bytes) -> ChapResponse:
    """
    build_chap_response(identifier, password, challenge)

    Parameters:
        identifier : CHAP identifier octet, 1 for the only challenge we send
        password   : plaintext password, hashed as UTF-8
        challenge  : 16 byte CHAP-Challenge

    Returns:
        ChapResponse whose digest is md5(identifier + password + challenge)
    """
    if len(challenge) != CHALLENGE_LENGTH:
        raise ValueError(
            f"CHAP challenge must be {CHALLENGE_LENGTH} bytes, got {len(challenge)}")
    if isinstance(password, str):
        password = password.encode("utf-8")
    # MD5 is mandated by CHAP (RFC 1994), not a general purpose hash here
    digest = hashlib.md5(
        bytes([identifier]) + password + challenge, usedforsecurity=False
    ).digest()
    return ChapResponse(identifier, digest)
