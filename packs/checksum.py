"""Checksum verification for downloaded pack archives.

Expected checksums are written as ``[algorithm:]hexdigest``; the algorithm
defaults to sha256.
"""

from __future__ import annotations

import hashlib
import hmac
from pathlib import Path

DEFAULT_ALGORITHM = "sha256"
CHUNK_SIZE = 64 * 1024


class ChecksumError(Exception):
    """Raised when a checksum cannot be parsed or computed."""

    pass


class ChecksumMismatchError(ChecksumError):
    """Raised when a file does not match its expected checksum."""

    def __init__(self, expected: str, actual: str, algorithm: str = DEFAULT_ALGORITHM):
        self.expected = expected
        self.actual = actual
        self.algorithm = algorithm
        super().__init__(f"Checksum mismatch ({algorithm}): expected {expected}, got {actual}")


def parse_checksum(expected: str) -> tuple[str, str]:
    """Split an expected checksum into algorithm and lowercase hex digest.

    Raises:
        ChecksumError: On an empty value, unknown algorithm or non-hex digest.
    """
    text = (expected or "").strip()
    if not text:
        raise ChecksumError("Empty checksum")

    algorithm, sep, digest = text.partition(":")
    if not sep:
        algorithm, digest = DEFAULT_ALGORITHM, text
    algorithm = algorithm.strip().lower()
    digest = digest.strip().lower()

    if algorithm not in hashlib.algorithms_available:
        raise ChecksumError(f"Unsupported checksum algorithm: {algorithm}")
    try:
        digest_size = hashlib.new(algorithm).digest_size
    except ValueError:
        raise ChecksumError(f"Unsupported checksum algorithm: {algorithm}")
    # shake_* and other variable-length hashes report 0
    if not digest_size:
        raise ChecksumError(f"Unsupported checksum algorithm: {algorithm}")
    try:
        bytes.fromhex(digest)
    except ValueError:
        raise ChecksumError(f"Checksum is not a hex digest: {digest!r}")
    if not digest:
        raise ChecksumError("Empty checksum")

    return algorithm, digest


def compute_digest(path: Path, algorithm: str = DEFAULT_ALGORITHM) -> str:
    """Hash a file in chunks and return the hex digest."""
    hasher = hashlib.new(algorithm)
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(CHUNK_SIZE), b""):
            hasher.update(chunk)
    return hasher.hexdigest()


def verify_checksum(path: Path, expected: str | None) -> str | None:
    """Verify ``path`` against ``expected``.

    Args:
        path: File to verify.
        expected: ``[algorithm:]hexdigest``, or None/empty to skip.

    Returns:
        The computed digest, or None when verification was skipped.

    Raises:
        ChecksumError: If ``expected`` is malformed.
        ChecksumMismatchError: If the digests differ.
    """
    if not expected or not expected.strip():
        return None

    algorithm, digest = parse_checksum(expected)
    actual = compute_digest(path, algorithm)
    if not hmac.compare_digest(actual, digest):
        raise ChecksumMismatchError(digest, actual, algorithm)
    return actual
