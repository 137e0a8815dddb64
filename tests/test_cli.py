import io
import zipfile

import pytest
from PIL import Image

from mangacompressor.cli import main, parse_resize


def _make_cbz(path):
    img = Image.new("RGB", (12, 16), (255, 255, 255))
    img.paste((0, 0, 0), (2, 2, 10, 14))
    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    with zipfile.ZipFile(path, "w") as archive:
        archive.writestr("page.png", buffer.getvalue())
    return path


def test_parse_resize_default_value():
    assert parse_resize("1236x1648") == (1236, 1648)


def test_parse_resize_empty_gives_zero():
    assert parse_resize("") == (0, 0)


def test_parse_resize_ignores_trailing_text():
    assert parse_resize("10x20px") == (10, 20)


@pytest.mark.parametrize("value", ["abc", "10", "x20", "10*20", "10x"])
def test_parse_resize_rejects_bad_values(value):
    with pytest.raises(ValueError):
        parse_resize(value)


def test_main_requires_files():
    with pytest.raises(SystemExit) as exc:
        main([])
    assert "--files" in str(exc.value.code)


@pytest.mark.parametrize("threshold", ["-2", "101"])
def test_main_rejects_bad_threshold(threshold):
    with pytest.raises(SystemExit) as exc:
        main(["--files", "a.cbz", "--binarize", threshold])
    assert "Threshold must be between 0 and 100" in str(exc.value.code)


def test_main_rejects_bad_resize():
    with pytest.raises(SystemExit) as exc:
        main(["--files", "a.cbz", "--resize", "big"])
    assert "Invalid format for resize argument" in str(exc.value.code)


def test_main_processes_files(tmp_path, capsys):
    cbz = _make_cbz(tmp_path / "vol.cbz")
    out = tmp_path / "out"
    out.mkdir()
    status = main([
        "--files", f" {cbz} ",
        "--binarize", "50",
        "--resize", "6x8",
        "--output", str(out),
    ])
    assert status == 0
    produced = out / "vol_modified.cbz"
    assert produced.exists()
    captured = capsys.readouterr().out
    assert f"Processing CBZ file: {cbz}" in captured
    assert f"Successfully created: {produced}" in captured
    with zipfile.ZipFile(produced) as archive:
        page = Image.open(io.BytesIO(archive.read("page.png")))
        assert page.size == (6, 8)


def test_main_reports_errors_and_continues(tmp_path, capsys):
    good = _make_cbz(tmp_path / "good.cbz")
    missing = tmp_path / "missing.cbz"
    out = tmp_path / "out"
    out.mkdir()
    status = main([
        "-files", f"{missing},{good}",
        "-resize", "6x8",
        "-output", str(out),
    ])
    assert status == 0
    captured = capsys.readouterr().out
    assert f"Error processing {missing}:" in captured
    assert f"Successfully created: {out / 'good_modified.cbz'}" in captured