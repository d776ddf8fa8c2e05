# This is free and unencumbered software released into the public domain.
#
# Anyone is free to copy, modify, publish, use, compile, sell, or
# distribute this software, either in source code form or as a compiled
# binary, for any purpose, commercial or non-commercial, and by any
# means.
#
# In jurisdictions that recognize copyright laws, the author or authors
# of this software dedicate any and all copyright interest in the
# software to the public domain. We make this dedication for the benefit
# of the public at large and to the detriment of our heirs and
# successors. We intend this dedication to be an overt act of
# relinquishment in perpetuity of all present and future rights to this
# software under copyright law.
#
# THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND,
# EXPRESS OR IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF
# MERCHANTABILITY, FITNESS FOR A PARTICULAR PURPOSE AND NONINFRINGEMENT.
# IN NO EVENT SHALL THE AUTHORS BE LIABLE FOR ANY CLAIM, DAMAGES OR
# OTHER LIABILITY, WHETHER IN AN ACTION OF CONTRACT, TORT OR OTHERWISE,
# ARISING FROM, OUT OF OR IN CONNECTION WITH THE SOFTWARE OR THE USE OR
# OTHER DEALINGS IN THE SOFTWARE.
#
# For more information, please refer to <http://unlicense.org/>
#
# This implementation is based on the Myers diff algorithm.
# See http://www.xmailserver.org/diff2.pdf
#
# It works on raw byte strings (no line or token boundaries) and keeps a
# difflib-compatible opcode interface.

import logging
from collections.abc import Iterator

from bytepatch.config import PatchSettings
from bytepatch.errors import ResourceExhausted
from bytepatch.patch_model import EditOperation


logger = logging.getLogger(__name__)

# Linked list node for the history trace: (tag, prev_node)
# tag: 'i' (insert), 'd' (delete)
# prev_node: previous node tuple or None
# Only edits are tracked. Equal moves are implicit and replayed.


def _common_prefix(a: memoryview, b: memoryview) -> int:
    """Length of the common prefix of a and b, found by binary search on slices."""
    hi = min(len(a), len(b))
    if hi == 0 or a[0] != b[0]:
        return 0
    lo = 0
    while lo < hi:
        mid = (lo + hi + 1) // 2
        if a[lo:mid] == b[lo:mid]:
            lo = mid
        else:
            hi = mid - 1
    return lo


def _common_suffix(a: memoryview, b: memoryview) -> int:
    """Length of the common suffix of a and b."""
    n = len(a)
    m = len(b)
    hi = min(n, m)
    if hi == 0 or a[n - 1] != b[m - 1]:
        return 0
    lo = 0
    while lo < hi:
        mid = (lo + hi + 1) // 2
        if a[n - mid:n - lo] == b[m - mid:m - lo]:
            lo = mid
        else:
            hi = mid - 1
    return lo


class MyersByteMatcher:
    """
    A byte-level sequence matcher using the greedy O(N*D) Myers algorithm.

    The common prefix and suffix are stripped before the search, so the cost
    follows the size of the differing region rather than the file size.
    Runs of deletes and inserts between two equal blocks are coalesced into
    a single 'replace', 'delete' or 'insert' opcode.

    Ties between equally long paths are broken towards the delete move, so
    the earliest common bytes of `a` are matched first and identical inputs
    always give identical opcodes.
    """

    def __init__(self, a: bytes = b"", b: bytes = b"", settings: PatchSettings | None = None) -> None:
        self.a = self.b = None
        self.opcodes = None
        self.settings = settings or PatchSettings()
        self.set_seqs(a, b)

    def set_seqs(self, a: bytes, b: bytes) -> None:
        self.set_seq1(a)
        self.set_seq2(b)

    def set_seq1(self, a: bytes) -> None:
        if a is self.a:
            return
        self.a = a
        self.opcodes = None

    def set_seq2(self, b: bytes) -> None:
        if b is self.b:
            return
        self.b = b
        self.opcodes = None

    def get_opcodes(self) -> list[tuple[str, int, int, int, int]]:
        """
        Return list of 5-tuples describing how to turn a into b.
        Each tuple is of the form (tag, i1, i2, j1, j2).
        The result is cached for subsequent calls.

        Raises:
            ResourceExhausted: when the inputs exceed the configured size or
                               edit distance bounds.
        """
        if self.opcodes is not None:
            return self.opcodes

        a = self.a
        b = self.b
        n = len(a)
        m = len(b)

        limit = self.settings.max_input_size
        if n + m > limit:
            raise ResourceExhausted(f"inputs too large to align: {n + m} bytes, limit is {limit}", limit, n + m)

        view_a = memoryview(a)
        view_b = memoryview(b)
        prefix = _common_prefix(view_a, view_b)
        suffix = _common_suffix(view_a[prefix:], view_b[prefix:])

        opcodes = []
        if prefix:
            opcodes.append(('equal', 0, prefix, 0, prefix))
        opcodes.extend(self._middle_opcodes(prefix, n - suffix, prefix, m - suffix))
        if suffix:
            opcodes.append(('equal', n - suffix, n, m - suffix, m))

        logger.debug(f"Aligned {n} -> {m} bytes: prefix={prefix}, suffix={suffix}, opcodes={len(opcodes)}")

        self.opcodes = opcodes
        return opcodes

    def _middle_opcodes(self, a_lo: int, a_hi: int, b_lo: int, b_hi: int) -> Iterator[tuple[str, int, int, int, int]]:
        """Opcodes for the region left after prefix/suffix trimming."""
        if a_lo == a_hi and b_lo == b_hi:
            return iter([])
        if a_lo == a_hi:
            return iter([('insert', a_lo, a_hi, b_lo, b_hi)])
        if b_lo == b_hi:
            return iter([('delete', a_lo, a_hi, b_lo, b_hi)])

        history = self._search(a_lo, a_hi, b_lo, b_hi)
        return self._history_to_opcodes(history, a_lo, a_hi, b_lo, b_hi)

    def _search(self, a_lo: int, a_hi: int, b_lo: int, b_hi: int):
        """
        Greedy forward Myers search over a[a_lo:a_hi] and b[b_lo:b_hi].
        Returns the history node of the first path reaching the far corner.
        """
        a = self.a
        b = self.b
        n = a_hi - a_lo
        m = b_hi - b_lo

        edit_limit = self.settings.max_edit_distance
        # At least |n - m| edits are needed, so refuse early when that already exceeds the limit.
        if abs(n - m) > edit_limit:
            raise ResourceExhausted(
                f"edit distance of at least {abs(n - m)} exceeds limit {edit_limit}", edit_limit, abs(n - m))

        max_d = min(n + m, edit_limit)
        offset = max_d + 1

        # Frontier: list mapping k to (x, history_node), k = x - y.
        # Index = k + offset. The extra slot on each side holds the (-1, None) sentinel.
        frontier = [(-1, None)] * (2 * max_d + 3)

        # Initial Snake (d=0). After prefix trimming this is normally empty.
        x = 0
        while x < n and x < m and a[a_lo + x] == b[b_lo + x]:
            x += 1
        frontier[offset] = (x, None)

        if x >= n and x >= m:
            return None

        for d in range(1, max_d + 1):
            for k in range(-d, d + 1, 2):
                idx_k = offset + k

                # k-1 comes from a delete (horizontal move)
                # k+1 comes from an insert (vertical move)
                x_minus, h_minus = frontier[idx_k - 1]
                x_plus, h_plus = frontier[idx_k + 1]

                # Strict comparison: on a tie the delete move wins.
                if k == -d or (k != d and x_minus < x_plus):
                    x = x_plus
                    history = ('i', h_plus)
                else:
                    x = x_minus + 1
                    history = ('d', h_minus)

                y = x - k

                # Snake: diagonal moves are not recorded, they are inferred during replay.
                while x < n and y < m and a[a_lo + x] == b[b_lo + y]:
                    x += 1
                    y += 1

                frontier[idx_k] = (x, history)

                if x >= n and y >= m:
                    logger.debug(f"Myers search: {n} x {m} bytes, edit distance {d}")
                    return history

        raise ResourceExhausted(
            f"edit distance exceeds limit {edit_limit} while aligning {n} x {m} bytes", edit_limit, max_d + 1)

    def _history_to_opcodes(self, history_node, a_lo: int, a_hi: int, b_lo: int, b_hi: int) -> Iterator[tuple[str, int, int, int, int]]:
        """
        Converts the linked-list history into difflib-style grouped opcodes.
        Replays the path from (a_lo, b_lo) to recover the diagonal moves.
        """
        # Linearize history (it is in reverse order)
        ops = []
        curr = history_node
        while curr is not None:
            tag, prev = curr
            ops.append(tag)
            curr = prev
        ops.reverse()

        a = self.a
        b = self.b
        i = a_lo
        j = b_lo

        # Pending edits are buffered so adjacent insert/delete merge into one opcode
        diff_start_i = i
        diff_start_j = j

        def emit_diff(end_i, end_j):
            nonlocal diff_start_i, diff_start_j
            if diff_start_i < end_i and diff_start_j < end_j:
                yield ('replace', diff_start_i, end_i, diff_start_j, end_j)
            elif diff_start_i < end_i:
                yield ('delete', diff_start_i, end_i, diff_start_j, end_j)
            elif diff_start_j < end_j:
                yield ('insert', diff_start_i, end_i, diff_start_j, end_j)
            diff_start_i = end_i
            diff_start_j = end_j

        ops_iter = iter(ops)

        while i < a_hi or j < b_hi:
            # Diagonal slide (equal)
            start_i, start_j = i, j
            while i < a_hi and j < b_hi and a[i] == b[j]:
                i += 1
                j += 1

            if i > start_i:
                yield from emit_diff(start_i, start_j)
                yield ('equal', start_i, i, start_j, j)
                diff_start_i = i
                diff_start_j = j

            if i >= a_hi and j >= b_hi:
                break

            op = next(ops_iter, None)
            if op is None:
                raise RuntimeError(f"Myers history exhausted at a={i}, b={j}")

            if op == 'd':
                i += 1
            else:
                j += 1

        yield from emit_diff(i, j)


def edit_script(a: bytes, b: bytes, settings: PatchSettings | None = None) -> tuple[EditOperation, ...]:
    """
    Aligns a (base) against b (target) and returns the edit operations that
    turn a into b. Inserted bytes are literal copies taken from b.
    """
    matcher = MyersByteMatcher(a, b, settings=settings)
    script = []
    for tag, i1, i2, j1, j2 in matcher.get_opcodes():
        if tag == 'equal':
            continue
        script.append(EditOperation(i1, i2 - i1, bytes(b[j1:j2])))
    return tuple(script)
