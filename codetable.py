"""
Text form of a code table

One row per symbol, most frequent first:

    <symbol>\t<frequency>\t<code>

followed by a summary row with the total encoded length, e.g. 总码长：42位.
Readers split rows on any whitespace, so whitespace symbols and the backslash
are written as escapes (\\s, \\t, \\n, \\r, \\\\, \\uXXXX, \\UXXXXXXXX).
"""

from typing import Dict, List, Optional, Tuple

from huffman import CodeTable, MalformedCodeTableLine, total_bit_length

SUMMARY_PREFIX = "总码长："
SUMMARY_SUFFIX = "位"
SUMMARY_MARKERS = ("总码长", "total bit length")

_NAMED_ESCAPES = {" ": "\\s", "\t": "\\t", "\n": "\\n", "\r": "\\r", "\\": "\\\\"}
_NAMED_UNESCAPES = {v: k for k, v in _NAMED_ESCAPES.items()}


def escape_symbol(symbol: str) -> str:
    named = _NAMED_ESCAPES.get(symbol)
    if named is not None:
        return named
    if symbol.isspace():
        cp = ord(symbol)
        return f"\\u{cp:04x}" if cp <= 0xFFFF else f"\\U{cp:08x}"
    return symbol


def unescape_symbol(field: str) -> Optional[str]:
    """Returns the symbol a table field stands for, or None when it is not a single character."""
    if len(field) == 1:
        return field
    if not field.startswith("\\"):
        return None

    named = _NAMED_UNESCAPES.get(field)
    if named is not None:
        return named
    if (field[1] == "u" and len(field) == 6) or (field[1] == "U" and len(field) == 10):
        try:
            return chr(int(field[2:], 16))
        except ValueError: # bad hex digits or code point out of range
            return None
    return None


def sorted_by_frequency(frequency_table: Dict[str, int]) -> List[Tuple[str, int]]:
    # sort is stable: equal frequencies keep first-occurrence order
    return sorted(frequency_table.items(), key=lambda item: -item[1])


def format_summary(total_bits: int) -> str:
    return f"{SUMMARY_PREFIX}{total_bits}{SUMMARY_SUFFIX}"


def serialize_code_table(frequency_table: Dict[str, int], code_table: CodeTable) -> str:
    lines = []
    for symbol, frequency in sorted_by_frequency(frequency_table):
        code = code_table.symbol_to_code[symbol]
        lines.append(f"{escape_symbol(symbol)}\t{frequency}\t{code}")
    lines.append(format_summary(total_bit_length(frequency_table, code_table)))
    return "\n".join(lines)


def is_summary_line(line: str) -> bool:
    lowered = line.lower()
    return any(lowered.startswith(marker) for marker in SUMMARY_MARKERS)


def parse_code_table(text: str) -> Tuple[CodeTable, List[MalformedCodeTableLine]]:
    """
    Rebuild the code -> symbol mapping from a serialized table
    Frequencies are read past, only symbol and code matter for decoding
    Bad rows are skipped and returned as warnings; the caller decides if an empty table is fatal
    """
    codes: Dict[str, str] = {}
    warnings: List[MalformedCodeTableLine] = []

    for line_no, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if not line or is_summary_line(line):
            continue

        parts = line.split()
        if len(parts) < 3:
            warnings.append(MalformedCodeTableLine(line_no, raw))
            continue

        symbol = unescape_symbol(parts[0])
        code = parts[2]
        if symbol is None or not code or set(code) - {"0", "1"}:
            warnings.append(MalformedCodeTableLine(line_no, raw))
            continue

        codes[symbol] = code

    return CodeTable.from_codes(codes), warnings
