import logging

from bytepatch.config import PatchSettings
from bytepatch.myersdiff import edit_script
from bytepatch.patch_model import Patch, fingerprint


logger = logging.getLogger(__name__)


def build_patch(
    base: bytes,
    target: bytes,
    settings: PatchSettings | None = None,
    base_fingerprint: bytes | None = None,
) -> Patch:
    """
    Builds a patch that turns `base` into `target`.

    Args:
        base: Content the patch will later be applied to.
        target: Content the patch must reproduce.
        settings: Aligner bounds; defaults to PatchSettings().
        base_fingerprint: Digest of `base` taken while it was read (see
                          fileio.read_file_with_digest). When omitted it is
                          computed here from the same `base` object handed
                          to the aligner.

    Inserted bytes are stored literally; the patch never refers back to `target`.

    Raises:
        ResourceExhausted: if the inputs are beyond the aligner's configured bounds.
    """
    if base_fingerprint is None:
        base_fingerprint = fingerprint(base)
    script = edit_script(base, target, settings=settings)

    logger.debug(f"Built patch for base {base_fingerprint.hex()[:16]}: "
                 f"{len(base)} -> {len(target)} bytes, {len(script)} operations")

    return Patch(base_fingerprint, script)
