import hmac
import logging
from collections import namedtuple

from bytepatch.errors import HashMismatch
from bytepatch.patch_model import Patch, fingerprint, validate_edit_script


logger = logging.getLogger(__name__)

# data: reconstructed bytes
# hash_matched: False when the fingerprint check failed and the apply was forced
ApplyResult = namedtuple('ApplyResult', ['data', 'hash_matched'])


def apply_patch(
    base: bytes,
    patch: Patch,
    force_on_mismatch: bool = False,
    base_fingerprint: bytes | None = None,
) -> ApplyResult:
    """
    Reconstructs the target sequence from `base` and `patch`.

    1. Integrity check: the digest of `base` must equal the patch fingerprint.
       On mismatch HashMismatch is raised, unless `force_on_mismatch` is set,
       in which case a warning is logged and the result is flagged.
    2. The edit script is validated against len(base). A malformed script is
       always fatal, forced or not.
    3. Replay: copy base bytes up to the next operation's location, skip the
       bytes it deletes, emit the bytes it inserts, repeat; then copy the tail.

    Nothing is returned until the replay has completed.
    `base_fingerprint` may carry the digest taken while `base` was read.

    Raises:
        HashMismatch: base does not match and the apply was not forced.
        MalformedPatch: operations are unordered, overlapping or out of range.
    """
    actual = fingerprint(base) if base_fingerprint is None else base_fingerprint
    hash_matched = hmac.compare_digest(actual, patch.base_fingerprint)
    if not hash_matched:
        if not force_on_mismatch:
            raise HashMismatch(patch.base_fingerprint, actual)
        logger.warning(f"Hash mismatch, forcing through it (expected {patch.base_fingerprint.hex()}, "
                       f"got {actual.hex()})")

    validate_edit_script(patch.edit_script, len(base))

    output = bytearray()
    pos = 0
    for op in patch.edit_script:
        # Copy until the next operation
        output += base[pos:op.location]
        # Skip the deleted range and insert the replacement
        output += op.insert_bytes
        pos = op.location + op.delete_count
        logger.debug(f"Patch op: loc={op.location}, del={op.delete_count}, ins={len(op.insert_bytes)} "
                     f"| out_pos={len(output)}")
    output += base[pos:]

    return ApplyResult(bytes(output), hash_matched)
