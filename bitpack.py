from typing import Dict, List, Tuple

from huffman import CodeTable, CorruptBitstream, MissingCodeForSymbol


def encode_symbols(text: str, code_table: CodeTable) -> Tuple[str, List[MissingCodeForSymbol]]:
    """
    Concatenate the code of every symbol in text
    Symbols without a code contribute no bits; each one is reported once with its count
    """
    parts: List[str] = []
    missing: Dict[str, int] = {}
    for ch in text:
        code = code_table.symbol_to_code.get(ch)
        if code is None:
            missing[ch] = missing.get(ch, 0) + 1
            continue
        parts.append(code)

    warnings = [MissingCodeForSymbol(symbol, count) for symbol, count in missing.items()]
    return "".join(parts), warnings


def padding_for(bit_length: int) -> int:
    return (8 - bit_length % 8) % 8


def pack_bits(bitstring: str) -> bytes:
    """
    Converts a '0'/'1' string into [pad_bits] + packed bytes, MSB first
    The last byte is right-padded with pad_bits zero bits
    """
    pad_bits = padding_for(len(bitstring))
    out = bytearray([pad_bits])
    acc = 0
    acc_bits = 0

    for ch in bitstring:
        acc = (acc << 1) | (1 if ch == '1' else 0)
        acc_bits += 1
        if acc_bits == 8:
            out.append(acc & 0xFF)
            acc = 0
            acc_bits = 0

    if acc_bits != 0:
        out.append((acc << pad_bits) & 0xFF)

    return bytes(out)


def unpack_bits(data: bytes) -> str:
    """
    Inverse of pack_bits: expand payload bytes to bits and drop the padding
    """
    if not data:
        return ""

    pad_bits = data[0]
    payload_bits = (len(data) - 1) * 8
    if pad_bits > 7:
        raise CorruptBitstream(f"padding count {pad_bits} out of range 0..7")
    if pad_bits > payload_bits: # header-only buffer must say 0
        raise CorruptBitstream(f"padding count {pad_bits} exceeds payload of {payload_bits} bits")
    if payload_bits == 0:
        return ""

    bits = "".join(format(byte, "08b") for byte in data[1:])
    return bits[:payload_bits - pad_bits]
