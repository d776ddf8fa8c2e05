import hashlib
from collections import namedtuple
from collections.abc import Iterable

from bytepatch.errors import MalformedPatch


FINGERPRINT_ALGO = "sha256"
FINGERPRINT_SIZE = 32

class EditOperation(namedtuple('EditOperation', ['location', 'delete_count', 'insert_bytes'])):
    """
    One change anchored in the base sequence:
    drop base[location:location + delete_count] and emit insert_bytes in its place.
    """

    __slots__ = ()

    def is_noop(self) -> bool:
        return self.delete_count == 0 and not self.insert_bytes


# base_fingerprint: SHA-256 digest of the base the patch was built against.
# edit_script: tuple of EditOperation, strictly increasing by location.
Patch = namedtuple('Patch', ['base_fingerprint', 'edit_script'])


def fingerprint(data: bytes) -> bytes:
    """Returns the raw 32-byte digest used as a patch's base fingerprint."""
    return hashlib.new(FINGERPRINT_ALGO, data).digest()


def new_hasher():
    return hashlib.new(FINGERPRINT_ALGO)


def validate_edit_script(script: Iterable[EditOperation], base_len: int | None = None) -> None:  # noqa: C901
    """
    Checks the structural invariants of an edit script.

    - Every operation has a non-negative location and delete count and a bytes payload.
    - No operation is a no-op (nothing deleted and nothing inserted).
    - Locations strictly increase, and no operation starts inside the range
      deleted by its predecessor. Touching ranges are fine.
    - With base_len given, every location is <= base_len and every deleted
      range ends within the base.

    Raises:
        MalformedPatch: on the first violation found.
    """
    prev_location = -1
    prev_end = 0

    for index, op in enumerate(script):
        location, delete_count, insert_bytes = op

        if not isinstance(location, int) or isinstance(location, bool) or location < 0:
            raise MalformedPatch(f"operation {index}: invalid location {location!r}")
        if not isinstance(delete_count, int) or isinstance(delete_count, bool) or delete_count < 0:
            raise MalformedPatch(f"operation {index}: invalid delete count {delete_count!r}")
        if not isinstance(insert_bytes, (bytes, bytearray)):
            raise MalformedPatch(f"operation {index}: insert payload must be bytes")
        if op.is_noop():
            raise MalformedPatch(f"operation {index}: no-op at location {location}")

        if location <= prev_location:
            raise MalformedPatch(
                f"operation {index}: location {location} does not follow previous location {prev_location}")
        if location < prev_end:
            raise MalformedPatch(
                f"operation {index}: location {location} overlaps range deleted up to {prev_end}")

        end = location + delete_count
        if base_len is not None:
            if location > base_len:
                raise MalformedPatch(f"operation {index}: location {location} beyond base length {base_len}")
            if end > base_len:
                raise MalformedPatch(
                    f"operation {index}: deletes up to {end}, past base length {base_len}")

        prev_location = location
        prev_end = end


def patch_summary(patch: Patch) -> dict:
    """Counts operations and bytes touched by a patch."""
    deleted = 0
    inserted = 0
    for op in patch.edit_script:
        deleted += op.delete_count
        inserted += len(op.insert_bytes)
    return {
        "fingerprint": patch.base_fingerprint.hex(),
        "operations": len(patch.edit_script),
        "deleted": deleted,
        "inserted": inserted,
    }
