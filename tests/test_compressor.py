import pytest

from bitpack import pack_bits
from compressor import (
    compress_file,
    compress_text,
    decompress_artifacts,
    decompress_file,
    main,
    write_artifacts,
)
from huffman import CorruptBitstream, EmptyAlphabet, EmptyCodeTable, MalformedCodeTableLine, ResidualBits


@pytest.mark.parametrize("text", [
    "aab",
    "a",
    "aaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaa",
    "line one\r\nline two\n\n\ttabbed \\ backslash",
    "哈夫曼编码是一种熵编码。\n总码长不是表头。",
    "emoji 🙂 and astral 𝔘 symbols",
    "".join(chr(c) for c in range(32, 127)) * 3,
])
def test_roundtrip(text):
    result = compress_text(text)
    assert result.warnings == []
    out = decompress_artifacts(result.table_text, result.packed)
    assert out.text == text
    assert out.warnings == []


def test_aab_matches_recomputed_bits():
    result = compress_text("aab")
    assert result.frequencies == {"a": 2, "b": 1}
    codes = result.code_table.symbol_to_code
    assert sorted(codes.values()) == ["0", "1"]
    bits = codes["a"] + codes["a"] + codes["b"]
    assert result.packed == pack_bits(bits)
    assert result.total_bits == 3
    assert result.pad_bits == 5


def test_single_symbol_alphabet():
    result = compress_text("zzzzzzzzzz")
    assert result.code_table.symbol_to_code == {"z": "0"}
    assert result.packed == bytes([6, 0, 0])
    assert decompress_artifacts(result.table_text, result.packed).text == "zzzzzzzzzz"


def test_empty_text_raises():
    with pytest.raises(EmptyAlphabet):
        compress_text("")


def test_malformed_line_is_skipped_with_warning():
    result = compress_text("aab")
    table_text = result.table_text.replace("\n", "\nx\t\n", 1)
    out = decompress_artifacts(table_text, result.packed)
    assert out.text == "aab"
    assert out.warnings == [MalformedCodeTableLine(2, "x\t")]


def test_empty_code_table_raises():
    with pytest.raises(EmptyCodeTable):
        decompress_artifacts("x\t\n总码长：0位", pack_bits("0"))


def test_residual_bits_reported():
    out = decompress_artifacts("a\t1\t10\nb\t1\t11\n总码长：4位", pack_bits("101"))
    assert out.text == "a"
    assert out.warnings == [ResidualBits("1")]


def test_corrupt_padding_raises():
    result = compress_text("aab")
    with pytest.raises(CorruptBitstream):
        decompress_artifacts(result.table_text, bytes([8]) + result.packed[1:])


def test_header_only_stream_with_padding_raises():
    with pytest.raises(CorruptBitstream):
        decompress_artifacts("a\t1\t0\n总码长：1位", bytes([200]))


def test_compress_and_decompress_files(tmp_path):
    text = "第一行\r\n second line\n"
    src = tmp_path / "data.txt"
    src.write_bytes(text.encode("utf-8"))
    table = tmp_path / "out" / "codeTable.txt"
    packed = tmp_path / "out" / "compressed.bin"
    decoded = tmp_path / "out" / "decoded.txt"

    result = compress_file(str(src), str(table), str(packed))
    assert table.read_text(encoding="utf-8") == result.table_text
    assert packed.read_bytes() == result.packed

    decompress_file(str(packed), str(table), str(decoded))
    assert decoded.read_bytes() == src.read_bytes()


def test_compress_empty_file_writes_nothing(tmp_path):
    src = tmp_path / "empty.txt"
    src.write_text("", encoding="utf-8")
    table = tmp_path / "codeTable.txt"
    packed = tmp_path / "compressed.bin"

    with pytest.raises(EmptyAlphabet):
        compress_file(str(src), str(table), str(packed))
    assert not table.exists()
    assert not packed.exists()


def test_write_artifacts_all_or_nothing(tmp_path):
    first = tmp_path / "first.txt"
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory")

    with pytest.raises(OSError):
        write_artifacts([(str(first), b"one"), (str(blocker / "second.bin"), b"two")])
    assert not first.exists()
    assert [p.name for p in tmp_path.iterdir()] == ["blocker"]


def test_cli_roundtrip(tmp_path, capsys):
    src = tmp_path / "data.txt"
    src.write_text("abracadabra\n", encoding="utf-8")
    decoded = tmp_path / "decoded.txt"
    args = [
        "roundtrip",
        "--input", str(src),
        "--table", str(tmp_path / "codeTable.txt"),
        "--packed", str(tmp_path / "compressed.bin"),
        "--output", str(decoded),
    ]
    assert main(args) == 0
    assert decoded.read_text(encoding="utf-8") == "abracadabra\n"
    out = capsys.readouterr().out
    assert "[compress] 12 symbols, 6 distinct" in out
    assert "[decompress] wrote" in out


def test_cli_reports_warnings(tmp_path, capsys):
    table = tmp_path / "codeTable.txt"
    packed = tmp_path / "compressed.bin"
    table.write_text("a\t1\t0\nbroken\n总码长：1位", encoding="utf-8")
    packed.write_bytes(pack_bits("0"))
    args = ["decompress", "--table", str(table), "--packed", str(packed),
            "--output", str(tmp_path / "decoded.txt")]
    assert main(args) == 0
    assert "malformed code table line 2" in capsys.readouterr().err


def test_cli_empty_input_fails(tmp_path, capsys):
    src = tmp_path / "empty.txt"
    src.write_text("", encoding="utf-8")
    table = tmp_path / "codeTable.txt"
    args = ["compress", "--input", str(src), "--table", str(table),
            "--packed", str(tmp_path / "compressed.bin")]
    assert main(args) == 1
    assert "Error:" in capsys.readouterr().err
    assert not table.exists()


def test_cli_missing_input_fails(tmp_path, capsys):
    args = ["compress", "--input", str(tmp_path / "nope.txt"),
            "--table", str(tmp_path / "t.txt"), "--packed", str(tmp_path / "p.bin")]
    assert main(args) == 1
    assert "Error:" in capsys.readouterr().err


def test_write_artifacts_accepts_a_generator(tmp_path):
    pairs = ((str(tmp_path / name), data) for name, data in [("a.txt", b"one"), ("b.bin", b"two")])
    write_artifacts(pairs)
    assert (tmp_path / "a.txt").read_bytes() == b"one"
    assert (tmp_path / "b.bin").read_bytes() == b"two"


def test_warnings_are_typed_records():
    out = decompress_artifacts("a\t1\t10\nbad\n总码长：2位", pack_bits("101"))
    assert [type(w).__name__ for w in out.warnings] == ["MalformedCodeTableLine", "ResidualBits"]
