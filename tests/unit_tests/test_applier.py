import logging
import random

import pytest

from bytepatch.applier import ApplyResult, apply_patch
from bytepatch.builder import build_patch
from bytepatch.config import PatchSettings
from bytepatch.errors import HashMismatch, MalformedPatch, ResourceExhausted
from bytepatch.patch_model import EditOperation, Patch, fingerprint


PAIRS = [
    (b"The quick brown fox jumps over the lazy dog.", b"The quick brown cat jumps over the lazy dog."),
    (b"Hello", b"Hello World"),
    (b"PrefixData", b"Data"),
    (b"AAAAABBBBBCCCCC", b"AAAAAXXXXXCCCCC"),
    (b"abc", b"abcd"),
    (b"abc", b"xabc"),
    (b"", b"fresh content"),
    (b"old content", b""),
    (b"\x00\x00\x00", b"\xff\x00\xff\x00"),
]


# --- Builder ---

def test_identity_has_no_operations():
    data = b"unchanged \x00 bytes"
    patch = build_patch(data, data)
    assert patch.edit_script == ()
    assert patch.base_fingerprint == fingerprint(data)
    assert apply_patch(data, patch) == ApplyResult(data, True)


def test_empty_base_single_insert():
    target = b"everything is new"
    patch = build_patch(b"", target)
    assert patch.edit_script == (EditOperation(0, 0, target),)


def test_empty_target_single_delete():
    base = b"everything goes"
    patch = build_patch(base, b"")
    assert patch.edit_script == (EditOperation(0, len(base), b""),)


def test_inserted_bytes_are_literal_copies():
    base = b"header|payload|footer"
    target = b"header|PAYLOAD!|footer"
    patch = build_patch(base, target)
    inserted = b"".join(op.insert_bytes for op in patch.edit_script)
    assert inserted and inserted in target
    assert all(isinstance(op.insert_bytes, bytes) for op in patch.edit_script)


def test_builder_uses_given_fingerprint():
    base = b"read once"
    digest = fingerprint(base)
    assert build_patch(base, b"read twice", base_fingerprint=digest).base_fingerprint is digest


def test_builder_is_reproducible():
    base = bytes(range(256)) * 4
    target = base[:300] + b"new bytes" + base[310:900] + base[950:]
    assert build_patch(base, target) == build_patch(base, target)


def test_builder_propagates_resource_exhausted():
    with pytest.raises(ResourceExhausted):
        build_patch(b"0123456789", b"abcdefghij", settings=PatchSettings(max_edit_distance=4))


# --- Round trip ---

@pytest.mark.parametrize("base,target", PAIRS)
def test_round_trip(base, target):
    result = apply_patch(base, build_patch(base, target))
    assert result.data == target
    assert result.hash_matched is True


def test_round_trip_random_mutations():
    rng = random.Random(2024)
    for _ in range(50):
        base = bytearray(rng.getrandbits(8) for _ in range(rng.randint(0, 400)))
        target = bytearray(base)
        for _ in range(rng.randint(0, 6)):
            pos = rng.randint(0, len(target))
            choice = rng.random()
            if choice < 0.4:
                target[pos:pos] = bytes(rng.getrandbits(8) for _ in range(rng.randint(1, 8)))
            elif choice < 0.8:
                del target[pos:pos + rng.randint(1, 8)]
            else:
                target[pos:pos + 3] = b"~~~"
        base = bytes(base)
        target = bytes(target)
        assert apply_patch(base, build_patch(base, target)).data == target


def test_append_at_end_is_applied():
    patch = build_patch(b"abc", b"abcd")
    assert patch.edit_script == (EditOperation(3, 0, b"d"),)
    assert apply_patch(b"abc", patch).data == b"abcd"


# --- Integrity check ---

def test_single_byte_change_is_hash_mismatch():
    base = b"The base the patch was built against"
    patch = build_patch(base, b"The base after the edit")

    for pos in (0, len(base) // 2, len(base) - 1):
        tampered = bytearray(base)
        tampered[pos] ^= 0x01
        with pytest.raises(HashMismatch) as excinfo:
            apply_patch(bytes(tampered), patch)
        assert excinfo.value.expected == patch.base_fingerprint
        assert excinfo.value.actual == fingerprint(bytes(tampered))


def test_forced_apply_replays_script(caplog):
    patch = build_patch(b"hello world", b"hello there world")
    assert patch.edit_script == (EditOperation(6, 0, b"there "),)

    with caplog.at_level(logging.WARNING):
        result = apply_patch(b"jello world", patch, force_on_mismatch=True)

    assert result == ApplyResult(b"jello there world", False)
    assert "Hash mismatch" in caplog.text


def test_forced_apply_does_not_skip_malformed_checks():
    patch = build_patch(b"0123456789", b"0123456789tail")
    with pytest.raises(MalformedPatch):
        apply_patch(b"short", patch, force_on_mismatch=True)


def test_given_fingerprint_is_checked():
    base = b"content"
    patch = build_patch(base, b"content!")
    with pytest.raises(HashMismatch):
        apply_patch(base, patch, base_fingerprint=fingerprint(b"other"))


# --- Malformed scripts ---

@pytest.mark.parametrize("script", [
    (EditOperation(5, 1, b"x"), EditOperation(2, 1, b"y")),
    (EditOperation(3, 0, b"a"), EditOperation(3, 1, b"b")),
    (EditOperation(2, 4, b""), EditOperation(4, 1, b"z")),
    (EditOperation(11, 0, b"x"),),
    (EditOperation(9, 2, b""),),
])
def test_malformed_script_is_rejected(script):
    base = b"0123456789"
    patch = Patch(fingerprint(base), script)
    with pytest.raises(MalformedPatch):
        apply_patch(base, patch)
    with pytest.raises(MalformedPatch):
        apply_patch(base, patch, force_on_mismatch=True)


def test_hand_built_script_with_touching_ranges():
    base = b"0123456789"
    patch = Patch(fingerprint(base), (
        EditOperation(0, 2, b"ab"),
        EditOperation(2, 2, b""),
        EditOperation(10, 0, b"!"),
    ))
    assert apply_patch(base, patch).data == b"ab456789!"
