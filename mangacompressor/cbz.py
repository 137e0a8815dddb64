"""Rewrite the pages of a CBZ archive into a smaller archive."""

from __future__ import annotations

import io
import os
import zipfile
from enum import Enum

from PIL import Image

from .imaging import compress_png, rgba_to_gray

_JPEG_QUALITY = 20


class _PageKind(Enum):
    PNG = "PNG"
    JPEG = "JPEG"


def _page_kind(name: str) -> _PageKind | None:
    if name.endswith(".png"):
        return _PageKind.PNG
    if name.endswith((".jpg", ".jpeg")):
        return _PageKind.JPEG
    return None


def _output_path(cbz_path: str, output_dir: str) -> str:
    name = os.path.basename(cbz_path) or "."
    return os.path.join(output_dir, name.replace(".cbz", "_modified.cbz", 1))


def _decode(data: bytes, kind: _PageKind, name: str) -> Image.Image:
    try:
        img = Image.open(io.BytesIO(data), formats=[kind.value])
        img.load()
    except (OSError, SyntaxError, ValueError) as exc:
        raise ValueError(f"failed to decode image {name}: {exc}") from exc
    return img


def _encode(img: Image.Image, kind: _PageKind) -> bytes:
    buffer = io.BytesIO()
    if kind is _PageKind.PNG:
        img.save(buffer, format="PNG")
    else:
        img.save(buffer, format="JPEG", quality=_JPEG_QUALITY)
    return buffer.getvalue()


def process_cbz_file(
    cbz_path: str | os.PathLike[str],
    bin_threshold: int,
    resize_width: int,
    resize_height: int,
    max_inner_rects: int,
    min_content_percent: int,
    output_dir: str | os.PathLike[str],
) -> str:
    """Compress every PNG and JPEG page of a CBZ file into a new archive.

    PNG pages are binarized (when the threshold is not negative), stripped of
    empty bands, turned upright and resized. JPEG pages are turned to
    grayscale and stored at low quality. Other entries are dropped.
    Returns the path of the archive written into output_dir.
    """
    cbz_path = os.fspath(cbz_path)
    output_dir = os.fspath(output_dir)
    output_path = _output_path(cbz_path, output_dir)

    with zipfile.ZipFile(cbz_path) as source:
        with open(output_path, "wb") as out_file, zipfile.ZipFile(
            out_file, "w", compression=zipfile.ZIP_DEFLATED
        ) as target:
            for info in source.infolist():
                kind = _page_kind(info.filename)
                if kind is None:
                    continue
                with source.open(info) as member:
                    data = member.read()
                img = _decode(data, kind, info.filename)
                if kind is _PageKind.PNG:
                    img = compress_png(
                        img,
                        bin_threshold,
                        resize_width,
                        resize_height,
                        max_inner_rects,
                        min_content_percent,
                    )
                else:
                    img = rgba_to_gray(img)
                target.writestr(info.filename, _encode(img, kind))

    return output_path