import logging
import os

from bytepatch.applier import apply_patch
from bytepatch.builder import build_patch
from bytepatch.codec import decode_patch, encode_patch
from bytepatch.config import PatchSettings
from bytepatch.fileio import read_file, read_file_with_digest


logger = logging.getLogger(__name__)


def diff(old: bytes, new: bytes, settings: PatchSettings | None = None) -> bytes:
    """
    Generates a serialized patch converting `old` into `new`.

    The result is the zlib compressed JSON form described in bytepatch.codec,
    carrying the SHA-256 fingerprint of `old` and the edit script.
    """
    return encode_patch(build_patch(old, new, settings=settings), settings=settings)


def patch(old: bytes, patch_data: bytes, force: bool = False) -> bytes:
    """
    Applies a serialized patch to `old` and returns the reconstructed bytes.

    With `force`, a fingerprint mismatch is logged as a warning and the edit
    script is replayed anyway.

    Raises:
        MalformedPatch: if patch_data cannot be decoded or its script is invalid.
        HashMismatch: if `old` is not the content the patch was built against.
    """
    return apply_patch(old, decode_patch(patch_data), force_on_mismatch=force).data


def diff_files(
    base_path: str | os.PathLike,
    target_path: str | os.PathLike,
    settings: PatchSettings | None = None,
) -> bytes:
    """Reads both files and returns the serialized patch from base to target."""
    base, digest = read_file_with_digest(base_path)
    target = read_file(target_path)
    logger.info(f"Diffing {base_path} ({len(base)} bytes) against {target_path} ({len(target)} bytes)")
    built = build_patch(base, target, settings=settings, base_fingerprint=digest)
    return encode_patch(built, settings=settings)


def patch_file(base_path: str | os.PathLike, patch_data: bytes, force: bool = False) -> bytes:
    """Reads the base file and returns it with the serialized patch applied."""
    base, digest = read_file_with_digest(base_path)
    decoded = decode_patch(patch_data)
    logger.info(f"Patching {base_path} ({len(base)} bytes) with {len(decoded.edit_script)} operations")
    result = apply_patch(base, decoded, force_on_mismatch=force, base_fingerprint=digest)
    return result.data
