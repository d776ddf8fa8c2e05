import io
import logging
import os
import tempfile

from bytepatch.patch_model import new_hasher


logger = logging.getLogger(__name__)

READ_CHUNK_SIZE = 1024 * 1024
PATCH_SUFFIX = ".patch"
PATCHED_PREFIX = "[PATCHED]"
OUTPUT_MODE = 0o644


def read_file_with_digest(path: str | os.PathLike) -> tuple[bytes, bytes]:
    """
    Reads a whole file and hashes it in the same pass.
    Returns (content, sha256 digest of content).
    """
    hasher = new_hasher()
    buf = io.BytesIO()
    with open(path, "rb") as f:
        while True:
            chunk = f.read(READ_CHUNK_SIZE)
            if not chunk:
                break
            hasher.update(chunk)
            buf.write(chunk)
    return buf.getvalue(), hasher.digest()


def read_file(path: str | os.PathLike) -> bytes:
    with open(path, "rb") as f:
        return f.read()


def default_patch_name(base_path: str | os.PathLike) -> str:
    """Patch file name used when none is given: '<base name>.patch'."""
    return os.path.basename(os.fspath(base_path)) + PATCH_SUFFIX


def default_output_name(base_path: str | os.PathLike) -> str:
    """
    Output file name used by 'patch' when none is given.
    A trailing '.patch' is stripped from the base name; if there is none,
    '[PATCHED]' is prepended so the base file is never overwritten.
    """
    name = os.path.basename(os.fspath(base_path))
    if name.endswith(PATCH_SUFFIX) and len(name) > len(PATCH_SUFFIX):
        return name[:-len(PATCH_SUFFIX)]
    return PATCHED_PREFIX + name


def write_atomic(path: str | os.PathLike, data: bytes) -> None:
    """
    Writes data to path through a temporary file in the same directory,
    then renames it into place. On failure the destination is left untouched.
    """
    path = os.fspath(path)
    directory = os.path.dirname(os.path.abspath(path))
    with tempfile.NamedTemporaryFile(dir=directory, prefix=".bpatch-", delete=False) as tmp_file:
        tmp_path = tmp_file.name
        try:
            tmp_file.write(data)
            tmp_file.flush()
            os.fsync(tmp_file.fileno())
            os.chmod(tmp_path, OUTPUT_MODE)
        except BaseException:
            tmp_file.close()
            os.remove(tmp_path)
            raise
    try:
        os.replace(tmp_path, path)
    except BaseException:
        os.remove(tmp_path)
        raise
    logger.debug(f"Wrote {len(data)} bytes to {path}")
