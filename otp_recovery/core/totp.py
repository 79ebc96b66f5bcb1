"""Time-based one-time passwords (RFC 6238)

The record secret is used as the raw HMAC key (its UTF-8 bytes), so the RFC
test vectors apply directly.
"""
import hashlib
import hmac
import secrets
import struct
import time
from enum import Enum
from typing import Optional, Union

from otp_recovery.core.exceptions import (ConfigurationError,
                                          UnsupportedAlgorithmError)

DEFAULT_DIGITS = 6
DEFAULT_VALID_SECONDS = 30


class HashAlgorithm(str, Enum):
    SHA1 = "SHA1"
    SHA256 = "SHA256"
    SHA512 = "SHA512"

    @property
    def digestmod(self):
        return _DIGESTS[self]


_DIGESTS = {
    HashAlgorithm.SHA1: hashlib.sha1,
    HashAlgorithm.SHA256: hashlib.sha256,
    HashAlgorithm.SHA512: hashlib.sha512,
}


def resolve_algorithm(value: Union[str, HashAlgorithm]) -> HashAlgorithm:
    """Map a stored algorithm name ("sha1", "SHA-256", ...) onto the enum"""
    if isinstance(value, HashAlgorithm):
        return value
    normalized = str(value or "").upper().replace("-", "").strip()
    try:
        return HashAlgorithm(normalized)
    except ValueError:
        raise UnsupportedAlgorithmError(str(value))


def generate_secret(nbytes: int = 20) -> str:
    """Random key for a newly issued verification"""
    return secrets.token_hex(nbytes)


def generate_hotp(key: bytes, counter: int, algorithm: HashAlgorithm = HashAlgorithm.SHA1,
                  digits: int = DEFAULT_DIGITS) -> str:
    """HOTP value for one counter (RFC 4226 dynamic truncation)"""
    digest = hmac.new(key, struct.pack(">Q", counter),
                      algorithm.digestmod).digest()
    offset = digest[-1] & 0x0F
    code = struct.unpack(">I", digest[offset:offset + 4])[0] & 0x7FFFFFFF
    return str(code % (10 ** digits)).zfill(digits)


def _check_step(valid_seconds: int) -> None:
    if not isinstance(valid_seconds, int) or valid_seconds <= 0:
        raise ConfigurationError(
            f"valid_seconds must be a positive integer, got {valid_seconds!r}")


def generate_totp(
    secret: str,
    algorithm: Union[str, HashAlgorithm] = HashAlgorithm.SHA1,
    valid_seconds: int = DEFAULT_VALID_SECONDS,
    digits: int = DEFAULT_DIGITS,
    for_time: Optional[float] = None,
) -> str:
    """Code for the step containing ``for_time`` (defaults to now)"""
    hash_algorithm = resolve_algorithm(algorithm)
    _check_step(valid_seconds)
    if for_time is None:
        for_time = time.time()
    counter = int(for_time // valid_seconds)
    return generate_hotp(secret.encode("utf-8"), counter, hash_algorithm, digits)


def verify_totp(
    otp: str,
    secret: str,
    algorithm: Union[str, HashAlgorithm],
    valid_seconds: int,
    window: int,
    digits: int = DEFAULT_DIGITS,
    for_time: Optional[float] = None,
) -> bool:
    """
    Check ``otp`` against the current step and ``window`` steps either side.

    Every candidate in the window is computed and compared, and the results
    are OR-ed together, so the time taken does not depend on which offset
    matched. Codes of the wrong length or with non-digit characters are
    rejected before any HMAC is computed.

    Raises:
        UnsupportedAlgorithmError: unknown algorithm
        ConfigurationError: valid_seconds <= 0 or window < 0
    """
    hash_algorithm = resolve_algorithm(algorithm)
    _check_step(valid_seconds)
    if window < 0:
        raise ConfigurationError(f"window must not be negative, got {window!r}")

    if not isinstance(otp, str) or len(otp) != digits:
        return False
    if not (otp.isascii() and otp.isdigit()):
        return False

    if for_time is None:
        for_time = time.time()
    key = secret.encode("utf-8")
    current = int(for_time // valid_seconds)
    submitted = otp.encode("ascii")

    matched = False
    for offset in range(-window, window + 1):
        counter = current + offset
        if counter < 0:
            continue
        candidate = generate_hotp(key, counter, hash_algorithm, digits)
        matched |= hmac.compare_digest(candidate.encode("ascii"), submitted)
    return matched
