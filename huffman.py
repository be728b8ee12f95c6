import heapq
import itertools
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple, Union


# Errors (fatal)

class HuffmanError(Exception):
    """Parent of all fatal coder errors."""


class EmptyAlphabet(HuffmanError):
    """No symbols to build a Huffman tree from."""


class EmptyCodeTable(HuffmanError):
    """No usable entries in the code table."""


class CorruptBitstream(HuffmanError):
    """Packed bitstream header does not match its payload."""


# Warnings (non-fatal, collected on results)

@dataclass(frozen=True)
class MalformedCodeTableLine:
    line_no: int
    line: str

    def __str__(self) -> str:
        return f"malformed code table line {self.line_no}: {self.line!r}"


@dataclass(frozen=True)
class ResidualBits:
    bits: str

    def __str__(self) -> str:
        return f"{len(self.bits)} unmatched bits left after decoding: {self.bits}"


@dataclass(frozen=True)
class MissingCodeForSymbol:
    symbol: str
    count: int

    def __str__(self) -> str:
        return f"no code for symbol {self.symbol!r}, skipped {self.count} occurrence(s)"


CodingWarning = Union[MalformedCodeTableLine, ResidualBits, MissingCodeForSymbol]


class HuffmanNode: # Node for Huffman tree
    def __init__(self, symbol, frequency, left=None, right=None):
        self.symbol = symbol    # character or None
        self.frequency = frequency
        self.left = left
        self.right = right

    def is_leaf(self) -> bool:
        return self.left is None and self.right is None


@dataclass(frozen=True)
class CodeTable:
    """Both directions of a prefix-free code. Built together, never mutated."""
    symbol_to_code: Dict[str, str]
    code_to_symbol: Dict[str, str]

    @classmethod
    def from_codes(cls, codes: Dict[str, str]) -> "CodeTable":
        return cls(dict(codes), {code: symbol for symbol, code in codes.items()})

    def __len__(self) -> int:
        return len(self.symbol_to_code)


def count_frequencies(symbols: Iterable[str]) -> Dict[str, int]:
    ft: Dict[str, int] = {} # first-occurrence order is kept, the tree build relies on it for ties
    for s in symbols:
        ft[s] = ft.get(s, 0) + 1
    return ft


def build_huffman_tree(frequency_table: Dict[str, int]) -> HuffmanNode: # frequency_table: dict of symbol -> frequency
    if not frequency_table:
        raise EmptyAlphabet("no symbols to build a Huffman tree from")

    # heap entries are (frequency, sequence, node); sequence breaks ties so nodes are never compared
    sequence = itertools.count()
    priority_queue: List[Tuple[int, int, HuffmanNode]] = [
        (frequency, next(sequence), HuffmanNode(symbol, frequency))
        for symbol, frequency in frequency_table.items()
    ]
    heapq.heapify(priority_queue)

    # Build the tree
    while len(priority_queue) > 1:
        _, _, left = heapq.heappop(priority_queue)
        _, _, right = heapq.heappop(priority_queue)
        merged_frequency = left.frequency + right.frequency
        merged_node = HuffmanNode(None, merged_frequency, left, right) # internal node with combined frequency
        heapq.heappush(priority_queue, (merged_frequency, next(sequence), merged_node))

    return priority_queue[0][2] # root of the tree


def generate_huffman_codes(root: HuffmanNode) -> CodeTable: # root: root of the Huffman tree
    # lone leaf: fixed one-bit code instead of the empty path
    if root.is_leaf():
        return CodeTable.from_codes({root.symbol: "0"})

    codes: Dict[str, str] = {}
    stack: List[Tuple[HuffmanNode, str]] = [(root, "")] # explicit stack, skewed trees can be deeper than the recursion limit
    while stack:
        node, current_code = stack.pop()
        if node.is_leaf():
            codes[node.symbol] = current_code
            continue
        # right pushed first so the left subtree is visited first
        stack.append((node.right, current_code + "1"))
        stack.append((node.left, current_code + "0"))

    return CodeTable.from_codes(codes)


def build_code_table(frequency_table: Dict[str, int]) -> CodeTable:
    return generate_huffman_codes(build_huffman_tree(frequency_table))


def total_bit_length(frequency_table: Dict[str, int], code_table: CodeTable) -> int:
    """Sum over symbols of frequency * code length."""
    return sum(
        frequency * len(code_table.symbol_to_code[symbol])
        for symbol, frequency in frequency_table.items()
        if symbol in code_table.symbol_to_code
    )


def decode_bits(bitstring: str, code_to_symbol: Dict[str, str]) -> Tuple[str, Optional[ResidualBits]]:
    """
    Greedy prefix matching of a '0'/'1' string against a prefix-free code
    Returns the decoded text and a ResidualBits report when trailing bits match no code
    """
    decoded: List[str] = []
    candidate = ""
    for bit in bitstring:
        candidate += bit
        symbol = code_to_symbol.get(candidate)
        if symbol is not None: # first match is the only match in a prefix-free code
            decoded.append(symbol)
            candidate = ""

    residual = ResidualBits(candidate) if candidate else None
    return "".join(decoded), residual
