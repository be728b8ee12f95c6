import pytest

from bitpack import encode_symbols, pack_bits, padding_for, unpack_bits
from huffman import CodeTable, CorruptBitstream, MissingCodeForSymbol, build_code_table, count_frequencies


def test_padding_for():
    assert padding_for(0) == 0
    assert padding_for(3) == 5
    assert padding_for(8) == 0
    assert padding_for(9) == 7


def test_pack_three_bits():
    assert pack_bits("001") == bytes([5, 0b00100000])


def test_pack_msb_first_full_bytes():
    assert pack_bits("1000000000000001") == bytes([0, 0x80, 0x01])


def test_pack_empty():
    assert pack_bits("") == bytes([0])


@pytest.mark.parametrize("length", [1, 7, 8, 9, 15, 16, 17, 100])
def test_padding_byte_in_range_and_payload_byte_aligned(length):
    bits = ("1101" * 30)[:length]
    packed = pack_bits(bits)
    assert 0 <= packed[0] <= 7
    assert (len(packed) - 1) * 8 == length + packed[0]
    assert unpack_bits(packed) == bits


def test_unpack_only_padding_byte():
    assert unpack_bits(bytes([0])) == ""
    assert unpack_bits(b"") == ""


def test_unpack_bad_padding_raises():
    with pytest.raises(CorruptBitstream):
        unpack_bits(bytes([9, 0xFF]))


@pytest.mark.parametrize("header", [200, 8, 3, 1])
def test_unpack_header_only_needs_zero_padding(header):
    with pytest.raises(CorruptBitstream):
        unpack_bits(bytes([header]))


def test_aab_packs_its_own_codes():
    text = "aab"
    table = build_code_table(count_frequencies(text))
    expected_bits = "".join(table.symbol_to_code[c] for c in text)
    bits, warnings = encode_symbols(text, table)
    assert bits == expected_bits
    assert warnings == []

    packed = pack_bits(bits)
    assert packed[0] == 5
    assert packed[1] == int(expected_bits.ljust(8, "0"), 2)


def test_encode_skips_symbols_without_code():
    table = CodeTable.from_codes({"a": "0", "b": "1"})
    bits, warnings = encode_symbols("abzzaz", table)
    assert bits == "010"
    assert warnings == [MissingCodeForSymbol("z", 3)]
