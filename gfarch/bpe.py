"""
Standalone BPE Compression/Decompression Module

Byte pair encoding in the block format of Philip Gage's original coder
("A New Algorithm for Data Compression", C/C++ Users Journal, 1994), which
is what GfArch type 1 payloads use.

Each block is stored as:
    - Pair table: runs of literal codes as one byte (127 + run length),
      runs of pair codes as one byte (run length - 1) followed by
      left[, right] for every code in the run
    - 2 bytes: Packed size (big-endian)
    - Packed bytes
"""

from collections import Counter
from typing import Iterator, List, Tuple

from loguru import logger

from .errors import BPEDecompressError


# ============================================================================
# CONSTANTS
# ============================================================================

BPE_BLOCK_SIZE = 5000
BPE_MAX_CHARS = 200
BPE_THRESHOLD = 3
BPE_CODE_COUNT = 256
BPE_MAX_RUN = 127

DEFAULT_BPE_STACK_SIZE = 0x1000


# ============================================================================
# UTILITY FUNCTIONS
# ============================================================================


def _iter_blocks(data: bytes) -> Iterator[bytes]:
    """Split data into blocks that leave at least 56 byte values unused."""
    size = len(data)
    start = 0
    while start < size:
        limit = min(size, start + BPE_BLOCK_SIZE)
        if len(set(data[start:limit])) <= BPE_MAX_CHARS:
            yield data[start:limit]
            start = limit
            continue

        seen = set()
        end = start
        while end < limit:
            byte = data[end]
            if byte not in seen:
                if len(seen) >= BPE_MAX_CHARS:
                    break
                seen.add(byte)
            end += 1
        yield data[start:end]
        start = end


def _count_pairs(buffer: bytes) -> Counter:
    return Counter(zip(buffer, buffer[1:]))


def _discount(counts: Counter, pair: Tuple[int, int]) -> None:
    remaining = counts[pair] - 1
    if remaining > 0:
        counts[pair] = remaining
    else:
        del counts[pair]


def _replace_pair(
    buffer: bytes, pair: Tuple[int, int], code: int, counts: Counter
) -> bytes:
    """Replace every non-overlapping occurrence of pair, left to right.

    counts is updated in place so that it matches the pair counts of the
    returned buffer. Only the neighbours of each replaced site change.
    """
    left, right = pair
    target = bytes(pair)
    size = len(buffer)
    out = bytearray()
    pos = 0

    site = buffer.find(target)
    while site != -1:
        out += buffer[pos:site]
        if out:
            # Left neighbour may itself be a code written by this pass
            prev = out[-1]
            _discount(counts, (prev, left))
            counts[(prev, code)] += 1
        if site + 2 < size:
            following = buffer[site + 2]
            _discount(counts, (right, following))
            counts[(code, following)] += 1
        _discount(counts, pair)
        out.append(code)
        pos = site + 2
        site = buffer.find(target, pos)

    out += buffer[pos:]
    return bytes(out)


# ============================================================================
# DECOMPRESSOR
# ============================================================================


class BpeDecompressor:
    """Block-wise BPE expansion with a bounded explicit stack."""

    def __init__(self, compressed_data: bytes, stack_size: int = DEFAULT_BPE_STACK_SIZE):
        self.compressed_data = compressed_data
        self.stack_size = stack_size
        self.cursor = 0

    def _read_byte(self) -> int:
        if self.cursor >= len(self.compressed_data):
            raise BPEDecompressError(
                f"Unexpected end of BPE data at 0x{self.cursor:X}"
            )
        byte = self.compressed_data[self.cursor]
        self.cursor += 1
        return byte

    def decompress(self) -> bytes:
        logger.debug("Expanding {} bytes of BPE data", len(self.compressed_data))

        data_len = len(self.compressed_data)
        output = bytearray()
        self.cursor = 0

        while self.cursor < data_len:
            left, right = self._read_pair_table()
            packed_size = self._read_byte() << 8
            packed_size |= self._read_byte()
            self._expand_block(packed_size, left, right, output)

        return bytes(output)

    def _read_pair_table(self) -> Tuple[List[int], List[int]]:
        left = list(range(BPE_CODE_COUNT))
        right = [0] * BPE_CODE_COUNT

        code = 0
        count = self._read_byte()
        while True:
            # Skip a run of literal codes
            if count > BPE_MAX_RUN:
                code += count - BPE_MAX_RUN
                count = 0
            if code == BPE_CODE_COUNT:
                break
            if code + count >= BPE_CODE_COUNT:
                raise BPEDecompressError("BPE pair table overruns the code space")

            for _ in range(count + 1):
                left[code] = self._read_byte()
                if code != left[code]:
                    right[code] = self._read_byte()
                code += 1

            if code == BPE_CODE_COUNT:
                break
            count = self._read_byte()

        return left, right

    def _expand_block(
        self, packed_size: int, left: List[int], right: List[int], output: bytearray
    ) -> None:
        start = self.cursor
        end = start + packed_size
        if end > len(self.compressed_data):
            raise BPEDecompressError(
                f"BPE block of {packed_size} bytes at 0x{start:X} runs past end of data"
            )

        stack: List[int] = []
        stack_size = self.stack_size
        for code in self.compressed_data[start:end]:
            while True:
                if code == left[code]:
                    output.append(code)
                    if not stack:
                        break
                    code = stack.pop()
                else:
                    if len(stack) >= stack_size:
                        raise BPEDecompressError(
                            f"BPE expansion exceeds stack size {stack_size}"
                        )
                    stack.append(right[code])
                    code = left[code]

        self.cursor = end


# ============================================================================
# COMPRESSOR
# ============================================================================


class BpeCompressor:
    """Greedy most-frequent-pair substitution, one block at a time."""

    def __init__(self, data: bytes):
        self.data_bytes = bytes(data)
        self.output = bytearray()

    def compress(self) -> bytes:
        logger.debug("Compressing {} bytes with BPE", len(self.data_bytes))

        self.output = bytearray()
        for block in _iter_blocks(self.data_bytes):
            self._compress_block(block)

        return bytes(self.output)

    def _compress_block(self, block: bytes) -> None:
        buffer = bytes(block)
        left = list(range(BPE_CODE_COUNT))
        right = [0] * BPE_CODE_COUNT

        present = set(buffer)
        free_codes = [c for c in range(BPE_CODE_COUNT) if c not in present]

        counts = _count_pairs(buffer)
        while free_codes and counts:
            pair = max(counts, key=counts.__getitem__)
            if counts[pair] < BPE_THRESHOLD:
                break
            code = free_codes.pop()
            left[code], right[code] = pair
            buffer = _replace_pair(buffer, pair, code, counts)

        self._write_pair_table(left, right)
        self.output += len(buffer).to_bytes(2, "big")
        self.output += buffer

    def _write_pair_table(self, left: List[int], right: List[int]) -> None:
        out = self.output
        code = 0

        while code < BPE_CODE_COUNT:
            if code == left[code]:
                # Run of literal codes, then one code written without a count
                run = 1
                code += 1
                while run < BPE_MAX_RUN and code < BPE_CODE_COUNT and code == left[code]:
                    run += 1
                    code += 1
                out.append(run + BPE_MAX_RUN)
                if code == BPE_CODE_COUNT:
                    break
                run = 0
            else:
                # Run of pair codes, absorbing a lone literal between pairs
                run = 0
                code += 1
                while (
                    run < BPE_MAX_RUN
                    and code < BPE_CODE_COUNT
                    and code != left[code]
                ) or (
                    run < BPE_MAX_RUN - 2
                    and code < BPE_CODE_COUNT - 2
                    and code + 1 != left[code + 1]
                ):
                    run += 1
                    code += 1
                out.append(run)
                code -= run + 1

            for _ in range(run + 1):
                out.append(left[code])
                if code != left[code]:
                    out.append(right[code])
                code += 1


# ============================================================================
# BPE CONTAINER
# ============================================================================


class Bpe:
    """BPE stream helpers."""

    @staticmethod
    def decompress(data: bytes, stack_size: int = DEFAULT_BPE_STACK_SIZE) -> bytes:
        """
        Expand a BPE stream.

        Args:
            data: Raw BPE blocks
            stack_size: Maximum number of pending pair halves during expansion

        Returns:
            Expanded data
        """
        return BpeDecompressor(data, stack_size).decompress()

    @staticmethod
    def compress(data: bytes) -> bytes:
        """
        Compress data to a BPE stream.

        Args:
            data: Uncompressed data

        Returns:
            Raw BPE blocks
        """
        return BpeCompressor(data).compress()
