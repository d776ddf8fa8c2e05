"""
Serialized patch format.

The patch is JSON encoded and then zlib compressed:

    {"H": <base64 fingerprint>, "M": [{"L": <location>, "I": <base64 insert>, "D": <delete count>}, ...]}

"L" and "D" are omitted when zero and "I" is omitted when empty. A decoder
treats an absent field exactly like an explicit zero or empty value.
"""
import base64
import binascii
import json
import logging
import zlib

from bytepatch.config import PatchSettings
from bytepatch.errors import MalformedPatch
from bytepatch.patch_model import FINGERPRINT_SIZE, EditOperation, Patch


logger = logging.getLogger(__name__)

KEY_HASH = "H"
KEY_MODIFICATIONS = "M"
KEY_LOCATION = "L"
KEY_INSERT = "I"
KEY_DELETE = "D"


def _encode_operation(op: EditOperation) -> dict:
    entry = {}
    if op.location:
        entry[KEY_LOCATION] = op.location
    if op.insert_bytes:
        entry[KEY_INSERT] = base64.b64encode(op.insert_bytes).decode('ascii')
    if op.delete_count:
        entry[KEY_DELETE] = op.delete_count
    return entry


def encode_patch(patch: Patch, settings: PatchSettings | None = None) -> bytes:
    """Serializes a patch to compact JSON and compresses it with zlib."""
    settings = settings or PatchSettings()
    document = {
        KEY_HASH: base64.b64encode(patch.base_fingerprint).decode('ascii'),
        KEY_MODIFICATIONS: [_encode_operation(op) for op in patch.edit_script],
    }
    raw = json.dumps(document, separators=(',', ':')).encode('utf-8')
    compressed = zlib.compress(raw, settings.compression_level)
    logger.debug(f"Encoded patch: {len(patch.edit_script)} operations, json={len(raw)}, compressed={len(compressed)}")
    return compressed


def _b64decode(value, what: str) -> bytes:
    if not isinstance(value, str):
        raise MalformedPatch(f"{what} must be a base64 string")
    try:
        return base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError) as e:
        raise MalformedPatch(f"{what} is not valid base64") from e


def _int_field(entry: dict, key: str, index: int) -> int:
    value = entry.get(key)
    if value is None:
        return 0
    if not isinstance(value, int) or isinstance(value, bool) or value < 0:
        raise MalformedPatch(f"operation {index}: field '{key}' must be a non-negative integer, got {value!r}")
    return value


def _decode_operation(entry, index: int) -> EditOperation:
    if not isinstance(entry, dict):
        raise MalformedPatch(f"operation {index} must be an object")
    location = _int_field(entry, KEY_LOCATION, index)
    delete_count = _int_field(entry, KEY_DELETE, index)
    raw_insert = entry.get(KEY_INSERT)
    insert_bytes = b"" if raw_insert is None else _b64decode(raw_insert, f"operation {index} insert payload")
    return EditOperation(location, delete_count, insert_bytes)


def decode_patch(data: bytes) -> Patch:
    """
    Decompresses and decodes a serialized patch.

    Only the wire structure is checked here. Ordering and range checks
    against a concrete base happen when the patch is applied.

    Raises:
        MalformedPatch: if the data is not a valid compressed patch document.
    """
    try:
        raw = zlib.decompress(data)
    except zlib.error as e:
        raise MalformedPatch("patch data is not zlib compressed") from e

    try:
        document = json.loads(raw)
    except (UnicodeDecodeError, json.JSONDecodeError, RecursionError) as e:
        raise MalformedPatch("patch data is not valid JSON") from e

    if not isinstance(document, dict):
        raise MalformedPatch("patch document must be a JSON object")

    fingerprint = _b64decode(document.get(KEY_HASH), "fingerprint")
    if len(fingerprint) != FINGERPRINT_SIZE:
        raise MalformedPatch(f"fingerprint must be {FINGERPRINT_SIZE} bytes, got {len(fingerprint)}")

    entries = document.get(KEY_MODIFICATIONS)
    if entries is None:
        entries = []
    if not isinstance(entries, list):
        raise MalformedPatch("modifications must be a list")

    script = tuple(_decode_operation(entry, index) for index, entry in enumerate(entries))
    logger.debug(f"Decoded patch: {len(script)} operations")
    return Patch(fingerprint, script)
