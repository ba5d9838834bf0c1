import heapq
import struct
from dataclasses import dataclass
from typing import Dict, Iterable, Tuple

MAGIC = b"HUF1"
_ENTRY = struct.Struct(">BQ") # symbol, count
_U16 = struct.Struct(">H")
_U64 = struct.Struct(">Q")
HEADER_FIXED_SIZE = len(MAGIC) + _U16.size + _U64.size


class HuffmanError(Exception):
    """Base class for codec failures."""

class EmptyInputError(HuffmanError, ValueError):
    pass

class MalformedTreeError(HuffmanError, ValueError):
    pass

class TruncatedDataError(HuffmanError, EOFError):
    pass


class HuffmanNode: # Node for Huffman tree
    def __init__(self, symbol, frequency, left=None, right=None):
        self.symbol = symbol    # byte or None
        self.frequency = frequency
        self.left = left
        self.right = right

    def __repr__(self):
        if self.symbol is not None:
            return f"HuffmanNode(symbol={self.symbol}, frequency={self.frequency})"
        return f"HuffmanNode(frequency={self.frequency})"


def freq_table(data: bytes) -> Dict[int, int]:
    ft: Dict[int, int] = {}
    for b in data:
        ft[b] = ft.get(b, 0) + 1
    return ft


def build_huffman_tree(frequency_table: Dict[int, int]) -> HuffmanNode: # frequency_table: dict of symbol -> frequency
    """
    Merge the two lowest-frequency nodes until one remains.

    Ties on frequency go to the node created first: leaves are created in
    ascending symbol order, merged nodes after them in merge order. The
    first node popped becomes the left child.
    """
    if not frequency_table:
        raise EmptyInputError("cannot build a Huffman tree from an empty frequency table")

    priority_queue = []
    order = 0
    for symbol in sorted(frequency_table):
        frequency = frequency_table[symbol]
        if not 0 <= symbol <= 255:
            raise ValueError(f"symbol {symbol!r} is not a byte value")
        if frequency <= 0:
            raise ValueError(f"symbol {symbol} has non-positive frequency {frequency}")
        priority_queue.append((frequency, order, HuffmanNode(symbol, frequency)))
        order += 1
    heapq.heapify(priority_queue)

    while len(priority_queue) > 1:
        left_freq, _, left = heapq.heappop(priority_queue)
        right_freq, _, right = heapq.heappop(priority_queue)
        merged_node = HuffmanNode(None, left_freq + right_freq, left, right) # internal node with combined frequency
        heapq.heappush(priority_queue, (merged_node.frequency, order, merged_node))
        order += 1

    return priority_queue[0][2] # root of the tree


def _check_node(node) -> None:
    if node is None:
        raise MalformedTreeError("missing child node")
    if node.symbol is not None:
        if node.left is not None or node.right is not None:
            raise MalformedTreeError(f"leaf for symbol {node.symbol} has children")
        if not 0 <= node.symbol <= 255:
            raise MalformedTreeError(f"leaf symbol {node.symbol!r} is not a byte value")
    elif node.left is None or node.right is None:
        raise MalformedTreeError("internal node must have exactly two children")


def generate_huffman_codes(root: HuffmanNode) -> Dict[int, str]: # root: root of the Huffman tree
    _check_node(root)
    if root.symbol is not None:
        # Single-symbol tree has no branch to take, give it a 1-bit code
        return {root.symbol: "0"}

    codes: Dict[int, str] = {}
    stack = [(root, "")]
    while stack:
        node, current_code = stack.pop()
        _check_node(node)
        if node.symbol is not None:
            if node.symbol in codes:
                raise MalformedTreeError(f"symbol {node.symbol} appears on more than one leaf")
            codes[node.symbol] = current_code
            continue
        # right pushed first so the left subtree is visited first
        stack.append((node.right, current_code + "1"))
        stack.append((node.left, current_code + "0"))

    return codes # return the mapping of symbols to their corresponding Huffman codes


def pack_bits_from_codes(data: bytes, code_map: Dict[int, str]) -> Tuple[bytes, int]:
    """
    Converts Huffman codes into packed bytes
    Returns (packed_bytes, pad_bits) where pad_bits is number of 0 bits added at the end
    """
    # code -> (int value, bit length) once, instead of per character
    table = {sym: (int(code, 2), len(code)) for sym, code in code_map.items()}
    out = bytearray()
    acc = 0
    acc_bits = 0

    for b in data:
        value, length = table[b]
        acc = (acc << length) | value
        acc_bits += length
        while acc_bits >= 8:
            acc_bits -= 8
            out.append((acc >> acc_bits) & 0xFF)
        acc &= (1 << acc_bits) - 1

    pad_bits = 0
    if acc_bits != 0:
        pad_bits = 8 - acc_bits
        out.append((acc << pad_bits) & 0xFF)

    return bytes(out), pad_bits


def unpack_and_decode(packed: bytes, bit_count: int, root: HuffmanNode, symbol_count: int) -> bytes:
    """
    Decode packed bits using Huffman tree.

    The last symbol must end exactly on bit_count; trailing pad bits are
    never read.
    """
    if len(packed) * 8 < bit_count:
        raise TruncatedDataError(
            f"payload holds {len(packed) * 8} bits, header records {bit_count}"
        )
    _check_node(root)

    decoded = bytearray()
    if symbol_count == 0:
        return bytes(decoded)

    single = root.symbol is not None
    node = root

    for bit_index in range(bit_count):
        bit = (packed[bit_index >> 3] >> (7 - (bit_index & 7))) & 1

        if single:
            if bit:
                raise MalformedTreeError("single-symbol stream contains a 1 bit")
            decoded.append(root.symbol)
        else:
            node = node.right if bit == 1 else node.left
            _check_node(node)
            if node.symbol is None:
                continue
            decoded.append(node.symbol)
            node = root

        if len(decoded) == symbol_count:
            if bit_index + 1 != bit_count:
                raise MalformedTreeError(
                    f"{bit_count - bit_index - 1} bits left over after {symbol_count} symbols"
                )
            return bytes(decoded)

    raise TruncatedDataError(
        f"bitstream ended after {len(decoded)} of {symbol_count} symbols"
    )


@dataclass(frozen=True)
class CompressedArtifact:
    """
    Self-describing result of compress().

    frequencies: (symbol, count) pairs sorted by symbol, enough to rebuild the tree
    bit_count:   number of meaningful bits in payload
    payload:     packed code bits, MSB first, zero padded
    """
    frequencies: Tuple[Tuple[int, int], ...]
    bit_count: int
    payload: bytes

    @property
    def symbol_count(self) -> int:
        return sum(count for _, count in self.frequencies)

    @property
    def pad_bits(self) -> int:
        return len(self.payload) * 8 - self.bit_count

    def frequency_table(self) -> Dict[int, int]:
        return dict(self.frequencies)

    def to_bytes(self) -> bytes:
        parts = [MAGIC, _U16.pack(len(self.frequencies))]
        parts.extend(_ENTRY.pack(symbol, count) for symbol, count in self.frequencies)
        parts.append(_U64.pack(self.bit_count))
        parts.append(self.payload)
        return b"".join(parts)

    @classmethod
    def from_bytes(cls, blob: bytes) -> "CompressedArtifact":
        mv = memoryview(blob)
        if len(mv) < len(MAGIC) + _U16.size:
            raise TruncatedDataError("artifact header is incomplete")
        if mv[:len(MAGIC)].tobytes() != MAGIC:
            raise MalformedTreeError("not a Huffman artifact (bad magic)")
        i = len(MAGIC)

        (n_entries,) = _U16.unpack_from(mv, i); i += _U16.size
        if n_entries > 256:
            raise MalformedTreeError(f"frequency table has {n_entries} entries, at most 256 allowed")
        if len(mv) < i + n_entries * _ENTRY.size + _U64.size:
            raise TruncatedDataError("artifact frequency table is incomplete")

        entries = []
        for _ in range(n_entries):
            entries.append(_ENTRY.unpack_from(mv, i)); i += _ENTRY.size
        _check_entries(entries)

        (bit_count,) = _U64.unpack_from(mv, i); i += _U64.size
        payload_len = (bit_count + 7) // 8
        payload = mv[i:].tobytes()
        if len(payload) < payload_len:
            raise TruncatedDataError(
                f"payload is {len(payload)} bytes, {payload_len} expected"
            )
        if len(payload) > payload_len:
            raise MalformedTreeError(
                f"{len(payload) - payload_len} unexpected bytes after payload"
            )
        if not entries and bit_count:
            raise MalformedTreeError("empty frequency table with a non-empty payload")
        return cls(tuple(entries), bit_count, payload)


def _check_entries(entries) -> None:
    # same table rules for parsed headers and caller-built artifacts
    if len(entries) > 256:
        raise MalformedTreeError(f"frequency table has {len(entries)} entries, at most 256 allowed")
    prev = -1
    for symbol, count in entries:
        if not 0 <= symbol <= 255:
            raise MalformedTreeError(f"symbol {symbol!r} is not a byte value")
        if symbol <= prev:
            raise MalformedTreeError("frequency table symbols must be strictly increasing")
        if count <= 0:
            raise MalformedTreeError(f"symbol {symbol} has a non-positive count")
        prev = symbol


EMPTY_ARTIFACT = CompressedArtifact((), 0, b"")


def _sorted_entries(ft: Dict[int, int]) -> Tuple[Tuple[int, int], ...]:
    return tuple(sorted(ft.items()))


def compress(data: bytes) -> CompressedArtifact:
    if not data:
        return EMPTY_ARTIFACT
    ft = freq_table(data)
    root = build_huffman_tree(ft)
    code_map = generate_huffman_codes(root)
    packed, pad_bits = pack_bits_from_codes(data, code_map)
    return CompressedArtifact(_sorted_entries(ft), len(packed) * 8 - pad_bits, packed)


def decompress(artifact: CompressedArtifact) -> bytes:
    if not artifact.frequencies:
        if artifact.bit_count or artifact.payload:
            raise MalformedTreeError("empty frequency table with a non-empty payload")
        return b""
    _check_entries(artifact.frequencies)
    root = build_huffman_tree(artifact.frequency_table())
    return unpack_and_decode(artifact.payload, artifact.bit_count, root, root.frequency)


def compress_bytes(data: bytes) -> bytes:
    return compress(data).to_bytes()


def decompress_bytes(blob: bytes) -> bytes:
    return decompress(CompressedArtifact.from_bytes(blob))


def code_lengths(entries: Iterable[Tuple[int, int]]) -> Dict[int, int]:
    # symbol -> code length for an artifact's frequency table
    table = dict(entries)
    if not table:
        return {}
    return {sym: len(code) for sym, code in generate_huffman_codes(build_huffman_tree(table)).items()}


def is_prefix_free(code_map: Dict[int, str]) -> bool:
    codes = sorted(code_map.values())
    # after sorting, a prefix always sits right before some code it prefixes
    return all(not b.startswith(a) for a, b in zip(codes, codes[1:]))
