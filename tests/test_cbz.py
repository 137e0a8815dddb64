import io
import zipfile

import pytest
from PIL import Image, ImageDraw

from mangacompressor.cbz import process_cbz_file
from mangacompressor.imaging import rgba_to_gray


def _png_bytes(size, landscape=False):
    img = Image.new("RGB", size, (255, 255, 255))
    draw = ImageDraw.Draw(img)
    w, h = size
    draw.rectangle((2, 2, w - 3, h - 3), fill=(0, 0, 0))
    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    return buffer.getvalue()


def _jpeg_bytes(size, color):
    buffer = io.BytesIO()
    Image.new("RGB", size, color).save(buffer, format="JPEG", quality=95)
    return buffer.getvalue()


def _make_cbz(path, entries):
    with zipfile.ZipFile(path, "w") as archive:
        for name, data in entries:
            archive.writestr(name, data)
    return path


@pytest.fixture
def sample_cbz(tmp_path):
    src = tmp_path / "src"
    src.mkdir()
    return _make_cbz(
        src / "book.cbz",
        [
            ("001.png", _png_bytes((30, 40))),
            ("notes.txt", b"hello"),
            ("002.jpg", _jpeg_bytes((16, 8), (200, 30, 30))),
            ("003.jpeg", _jpeg_bytes((8, 8), (10, 200, 10))),
            ("004.png", _png_bytes((40, 30))),
        ],
    )


def _run(cbz, out, width=20, height=24):
    return process_cbz_file(cbz, 50, width, height, 9, 10, out)


def test_output_name_and_location(sample_cbz, tmp_path):
    out = tmp_path / "out"
    out.mkdir()
    result = _run(sample_cbz, out)
    assert result == str(out / "book_modified.cbz")
    assert zipfile.is_zipfile(result)


def test_only_first_cbz_suffix_is_replaced(tmp_path):
    cbz = _make_cbz(tmp_path / "a.cbz.cbz", [("p.png", _png_bytes((10, 10)))])
    out = tmp_path / "out"
    out.mkdir()
    result = _run(cbz, out)
    assert result == str(out / "a_modified.cbz.cbz")


def test_non_image_entries_dropped_and_order_kept(sample_cbz, tmp_path):
    out = tmp_path / "out"
    out.mkdir()
    with zipfile.ZipFile(_run(sample_cbz, out)) as archive:
        assert archive.namelist() == ["001.png", "002.jpg", "003.jpeg", "004.png"]


def test_png_pages_are_resized(sample_cbz, tmp_path):
    out = tmp_path / "out"
    out.mkdir()
    with zipfile.ZipFile(_run(sample_cbz, out, 20, 24)) as archive:
        for name in ("001.png", "004.png"):
            img = Image.open(io.BytesIO(archive.read(name)))
            assert img.format == "PNG"
            assert img.size == (20, 24)


def test_jpeg_pages_become_grayscale(sample_cbz, tmp_path):
    out = tmp_path / "out"
    out.mkdir()
    with zipfile.ZipFile(_run(sample_cbz, out)) as archive:
        img = Image.open(io.BytesIO(archive.read("002.jpg")))
        assert img.format == "JPEG"
        assert img.mode == "L"
        assert img.size == (16, 8)
        original = Image.open(io.BytesIO(_jpeg_bytes((16, 8), (200, 30, 30))))
        expected = rgba_to_gray(original).getpixel((8, 4))
        assert abs(img.getpixel((8, 4)) - expected) <= 12


def test_no_leftover_files_in_output_dir(sample_cbz, tmp_path):
    out = tmp_path / "out"
    out.mkdir()
    _run(sample_cbz, out)
    assert sorted(p.name for p in out.iterdir()) == ["book_modified.cbz"]


def test_missing_archive_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        _run(tmp_path / "missing.cbz", tmp_path)


def test_not_a_zip_raises(tmp_path):
    bogus = tmp_path / "bogus.cbz"
    bogus.write_bytes(b"this is not a zip archive")
    with pytest.raises(zipfile.BadZipFile):
        _run(bogus, tmp_path)


def test_corrupt_image_raises_value_error(tmp_path):
    cbz = _make_cbz(tmp_path / "bad.cbz", [("001.png", b"not an image")])
    out = tmp_path / "out"
    out.mkdir()
    with pytest.raises(ValueError, match="failed to decode image"):
        _run(cbz, out)


def test_jpeg_content_in_png_entry_is_rejected(tmp_path):
    cbz = _make_cbz(
        tmp_path / "mixed.cbz", [("001.png", _jpeg_bytes((8, 8), (0, 0, 0)))]
    )
    out = tmp_path / "out"
    out.mkdir()
    with pytest.raises(ValueError):
        _run(cbz, out)