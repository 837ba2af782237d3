"""
Login Credential Derivation for cohost-bot.

cohost never receives the plaintext password. The client fetches a per-account
salt, derives a key from the password with PBKDF2-HMAC-SHA384, and sends the
Base64 encoded key as the "client hash".

Salt Decoding:
    The salt returned by GET login/salt looks like URL-safe Base64 without
    padding, but the site's own JavaScript decodes it with a lookup table for
    the standard (+/) alphabet. Characters missing from that table ("-" and
    "_") come back as undefined, which bitwise operations coerce to 0.
    To derive the same key as the browser, both characters are replaced with
    "A" (the standard character for 0) before a standard decode. A correct
    URL-safe decode gives different bytes and the login fails.
"""
import base64
import binascii
import hashlib
import logging

from .errors import Base64DecodeError


logger = logging.getLogger(__name__)

PBKDF2_ITERATIONS = 200_000
PBKDF2_KEY_LENGTH = 128
PBKDF2_DIGEST = "sha384"


def decode_salt(salt: str) -> bytes:
    """Decode a login salt the way the cohost web client does.

    Args:
        salt: Salt string from the login/salt endpoint (no padding)

    Returns:
        Decoded salt bytes

    Raises:
        Base64DecodeError: If the salt is not valid unpadded Base64

    Example:
        >>> decode_salt("dg6y2aIj_iKzcgaL_MM8_Q") == decode_salt("dg6y2aIjAiKzcgaLAMM8AQ")
        True
    """
    standard = salt.replace("-", "A").replace("_", "A")
    if "=" in standard or len(standard) % 4 == 1:
        raise Base64DecodeError(f"invalid salt length or padding: {salt!r}")
    padded = standard + "=" * (-len(standard) % 4)
    try:
        return base64.b64decode(padded, validate=True)
    except binascii.Error as e:
        raise Base64DecodeError(f"base64 decode error: {e}") from e


def derive_client_hash(password: str, salt: str) -> str:
    """Derive the client hash sent to POST login.

    Args:
        password: Plaintext account password
        salt: Salt string from the login/salt endpoint

    Returns:
        Standard (padded) Base64 encoding of the 128-byte PBKDF2 key

    Raises:
        Base64DecodeError: If the salt is malformed
    """
    key = hashlib.pbkdf2_hmac(
        PBKDF2_DIGEST,
        password.encode("utf-8"),
        decode_salt(salt),
        PBKDF2_ITERATIONS,
        dklen=PBKDF2_KEY_LENGTH,
    )
    logger.debug("Derived client hash from salt")
    return base64.b64encode(key).decode("ascii")
