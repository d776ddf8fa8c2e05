"""
Failure conditions raised by the diff and patch core.

All of them derive from ValueError: they describe bad or unexpected data,
not a broken environment. I/O problems are left as the OSError raised by
the file layer and are never wrapped.
"""


class PatchError(ValueError):
    """Base class for every structured diff/patch failure."""


class ResourceExhausted(PatchError):
    """The inputs are too large (or too different) to align safely."""

    def __init__(self, message: str, limit: int, actual: int) -> None:
        super().__init__(message)
        self.limit = limit
        self.actual = actual


class HashMismatch(PatchError):
    """The base content does not match the fingerprint stored in the patch."""

    def __init__(self, expected: bytes, actual: bytes) -> None:
        super().__init__(f"base fingerprint mismatch: patch expects {expected.hex()}, got {actual.hex()}")
        self.expected = expected
        self.actual = actual


class MalformedPatch(PatchError):
    """The patch cannot be decoded or its edit script breaks ordering/range rules."""
