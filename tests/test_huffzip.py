import pytest

import huffman as huff
import huffzip


@pytest.mark.parametrize("n, expected", [
    (0, "0 Bytes"),
    (1, "1 Bytes"),
    (500, "500 Bytes"),
    (1024, "1 KB"),
    (1536, "1.5 KB"),
    (1024 ** 2, "1 MB"),
    (1024 ** 3 * 5, "5 GB"),
    (123456789, "117.74 MB"),
])
def test_format_bytes(n, expected):
    assert huffzip.format_bytes(n) == expected


def test_format_bytes_decimals():
    assert huffzip.format_bytes(1500, decimals=0) == "1 KB"
    assert huffzip.format_bytes(1500, decimals=3) == "1.465 KB"


def test_default_output_names(tmp_path):
    src = tmp_path / "clip.mp4"
    assert huffzip.default_output(src, "compress").name == "clip.mp4.huf"
    assert huffzip.default_output(tmp_path / "clip.mp4.huf", "decompress").name == "clip.mp4"
    assert huffzip.default_output(tmp_path / "clip.bin", "decompress").name == "clip.bin.out"


def test_compress_decompress_roundtrip(tmp_path, capsys):
    data = b"\x00\x00\x01\x02" * 500 + bytes(range(256))
    src = tmp_path / "video.mp4"
    src.write_bytes(data)

    assert huffzip.main(["compress", str(src)]) == 0
    packed = tmp_path / "video.mp4.huf"
    assert packed.exists()
    assert huff.decompress_bytes(packed.read_bytes()) == data
    out = capsys.readouterr().out
    assert "original" in out and "compressed" in out

    restored = tmp_path / "restored.mp4"
    assert huffzip.main(["decompress", str(packed), "-o", str(restored)]) == 0
    assert restored.read_bytes() == data


def test_empty_file_roundtrip(tmp_path):
    src = tmp_path / "empty"
    src.write_bytes(b"")
    assert huffzip.main(["compress", str(src)]) == 0
    packed = tmp_path / "empty.huf"
    assert packed.stat().st_size == huff.HEADER_FIXED_SIZE

    packed_out = tmp_path / "empty.out"
    assert huffzip.main(["decompress", str(packed), "-o", str(packed_out)]) == 0
    assert packed_out.read_bytes() == b""


def test_refuses_to_overwrite(tmp_path, capsys):
    src = tmp_path / "a.bin"
    src.write_bytes(b"abc")
    dst = tmp_path / "a.bin.huf"
    dst.write_bytes(b"keep")

    assert huffzip.main(["compress", str(src)]) == 1
    assert dst.read_bytes() == b"keep"
    assert "already exists" in capsys.readouterr().err

    assert huffzip.main(["compress", str(src), "--force"]) == 0
    assert huff.decompress_bytes(dst.read_bytes()) == b"abc"


def test_decompress_truncated_reports_error(tmp_path, capsys):
    src = tmp_path / "bad.huf"
    src.write_bytes(huff.compress_bytes(b"hello hello hello")[:-1])
    assert huffzip.main(["decompress", str(src)]) == 1
    assert capsys.readouterr().err.startswith("error:")
    assert not (tmp_path / "bad").exists()


def test_missing_input_reports_error(tmp_path, capsys):
    assert huffzip.main(["compress", str(tmp_path / "nope")]) == 1
    assert "error:" in capsys.readouterr().err


def test_info(tmp_path, capsys):
    src = tmp_path / "x.huf"
    src.write_bytes(huff.compress_bytes(b"aaaabbc"))
    assert huffzip.main(["info", str(src)]) == 0
    out = capsys.readouterr().out
    assert "distinct symbols 3" in out
    assert "7 Bytes" in out
    assert "1..2 bits" in out


def test_usage_error_exits_2():
    with pytest.raises(SystemExit) as exc:
        huffzip.main([])
    assert exc.value.code == 2


def test_write_output_exclusive_create(tmp_path):
    dst = tmp_path / "out.bin"
    huffzip.write_output(dst, b"first", force=False)
    assert dst.read_bytes() == b"first"

    with pytest.raises(FileExistsError, match="already exists"):
        huffzip.write_output(dst, b"second", force=False)
    assert dst.read_bytes() == b"first"

    huffzip.write_output(dst, b"third", force=True)
    assert dst.read_bytes() == b"third"
