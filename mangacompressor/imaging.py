"""Image operations used to trim, rotate and shrink manga pages."""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Iterable, Sequence

from PIL import Image

_WHITE = (255, 255, 255)
# A line with this many stray pixels or more is no longer treated as empty.
_MAX_STRAY_PIXELS = 20
# Empty bands must be taller (or wider) than this to count as a border.
_MIN_GAP = 15


@dataclass(frozen=True)
class Rect:
    """A half-open rectangle: min corner inclusive, max corner exclusive."""

    min_x: int
    min_y: int
    max_x: int
    max_y: int

    def dx(self) -> int:
        return self.max_x - self.min_x

    def dy(self) -> int:
        return self.max_y - self.min_y

    def contains(self, x: int, y: int) -> bool:
        return self.min_x <= x < self.max_x and self.min_y <= y < self.max_y


def _rect(x0: int, y0: int, x1: int, y1: int) -> Rect:
    """Build a rectangle with its corners put in order."""
    return Rect(min(x0, x1), min(y0, y1), max(x0, x1), max(y0, y1))


def _box(rect: Rect) -> tuple[int, int, int, int]:
    return (rect.min_x, rect.min_y, rect.max_x, rect.max_y)


def _clip(rect: Rect, width: int, height: int) -> Rect | None:
    x0, y0 = max(rect.min_x, 0), max(rect.min_y, 0)
    x1, y1 = min(rect.max_x, width), min(rect.max_y, height)
    if x0 >= x1 or y0 >= y1:
        return None
    return Rect(x0, y0, x1, y1)


def _trunc_div(a: int, b: int) -> int:
    """Integer division rounding toward zero."""
    q = abs(a) // abs(b)
    return q if (a >= 0) == (b >= 0) else -q


def _from_bytes(mode: str, size: tuple[int, int], data: bytes) -> Image.Image:
    if size[0] == 0 or size[1] == 0:
        return Image.new(mode, size)
    return Image.frombytes(mode, size, data)


def _rgba_pixels(img: Image.Image) -> list[tuple[int, int, int, int]]:
    rgba = img if img.mode == "RGBA" else img.convert("RGBA")
    data = rgba.tobytes()
    return list(zip(data[0::4], data[1::4], data[2::4], data[3::4]))


@lru_cache(maxsize=65536)
def _rgb16(pixel: tuple[int, int, int, int]) -> tuple[int, int, int]:
    """16-bit alpha-premultiplied channels of an 8-bit RGBA pixel."""
    r, g, b, a = pixel
    return (r * 257 * a // 255, g * 257 * a // 255, b * 257 * a // 255)


@lru_cache(maxsize=65536)
def _rgb8(pixel: tuple[int, int, int, int]) -> tuple[int, int, int]:
    """Premultiplied channels scaled back to the 0-255 range."""
    return tuple(c >> 8 for c in _rgb16(pixel))  # type: ignore[return-value]


def _normalized_pixels(img: Image.Image) -> list[tuple[int, int, int]]:
    return [_rgb8(p) for p in _rgba_pixels(img)]


def _is_continuous(line: Iterable[tuple[int, int, int]], color: tuple[int, int, int]) -> bool:
    stray = sum(1 for px in line if px != color)
    return stray < _MAX_STRAY_PIXELS


def _gaps(flags: Sequence[bool]) -> list[tuple[int, int]]:
    """Find runs of continuous lines, as (start, end) pairs."""
    end = len(flags)
    start = end
    runs = []
    for i, continuous in enumerate(flags):
        if continuous:
            start = min(start, i)
        else:
            if start < i and i - start > _MIN_GAP:
                runs.append((start, i))
            start = end
    if start < end:
        runs.append((start, end))
    return runs


def binarize_image(img: Image.Image, threshold_percentage: int) -> Image.Image:
    """Turn the image into pure black and white around a percentage threshold."""
    threshold = _trunc_div(threshold_percentage * 255, 100) & 0xFF

    @lru_cache(maxsize=65536)
    def level(pixel: tuple[int, int, int, int]) -> int:
        gray = (sum(_rgb16(pixel)) // 3) & 0xFF
        return 255 if gray > threshold else 0

    values = bytes(level(p) for p in _rgba_pixels(img))
    return _from_bytes("L", img.size, values)


def copy_image(src: Image.Image) -> Image.Image:
    """Return an RGBA copy of the image."""
    return src.convert("RGBA")


def crop_image(src: Image.Image, rect: Rect) -> Image.Image:
    """Return the part of the image inside rect as a new RGBA image."""
    return src.convert("RGBA").crop(_box(rect))


def remove_rectangle(src: Image.Image, rect: Rect, background: Sequence[int]) -> Image.Image:
    """Return an RGBA copy with rect filled by the background colour."""
    out = src.convert("RGBA")
    fill = tuple(background) if len(background) == 4 else (*tuple(background)[:3], 255)
    clipped = _clip(rect, out.width, out.height)
    if clipped is not None:
        out.paste(fill, _box(clipped))
    return out


def get_remaining_rectangles(img: Image.Image, rects: Iterable[Rect]) -> list[Rect]:
    """Return rectangles covering the parts of the image outside the given rectangles."""
    width, height = img.size
    covered = [bytearray(width) for _ in range(height)]
    for rect in rects:
        clipped = _clip(rect, width, height)
        if clipped is None:
            continue
        mark = b"\x01" * clipped.dx()
        for row in covered[clipped.min_y:clipped.max_y]:
            row[clipped.min_x:clipped.max_x] = mark

    remaining: list[Rect] = []
    y = 0
    while y < height:
        x = 0
        while x < width:
            if not covered[y][x]:
                start_x, start_y = x, y
                while x < width and not covered[y][x]:
                    x += 1
                while y < height and not covered[y][start_x]:
                    y += 1
                remaining.append(_rect(start_x, start_y, x, y))
                y -= 1
            x += 1
        y += 1
    return remaining


def assemble_image_from_rectangles(src: Image.Image, rects: Sequence[Rect]) -> Image.Image:
    """Stack the given regions of the image on top of each other.

    The width of the result is that of the first rectangle.
    """
    if not rects:
        return src
    width = rects[0].dx()
    height = sum(rect.dy() for rect in rects)
    base = src.convert("RGBA")
    out = Image.new("RGBA", (width, height), (0, 0, 0, 0))
    y = 0
    for rect in rects:
        out.paste(base.crop(_box(rect)), (0, y))
        y += rect.dy()
    return out


def detect_outer_border(img: Image.Image) -> Rect:
    """Return the bounds of the non-white pixels, with inclusive max corner."""
    width, height = img.size
    mask = bytes(0 if px == _WHITE else 255 for px in _normalized_pixels(img))
    bbox = _from_bytes("L", img.size, mask).getbbox() if width and height else None
    if bbox is None:
        return _rect(width, height, 0, 0)
    left, top, right, bottom = bbox
    return _rect(left, top, right - 1, bottom - 1)


def is_line_continuous(src: Image.Image, color: Sequence[int], line: int, horizontal: bool) -> bool:
    """Tell whether a row or column is (nearly) all of one colour."""
    width, height = src.size
    target = tuple(color)[:3]
    pixels = _normalized_pixels(src)
    if horizontal:
        if 0 <= line < height:
            values = pixels[line * width:(line + 1) * width]
        else:
            values = [(0, 0, 0)] * width
    else:
        if 0 <= line < width:
            values = pixels[line::width]
        else:
            values = [(0, 0, 0)] * height
    return _is_continuous(values, target)  # type: ignore[arg-type]


def detect_inner_borders(src: Image.Image) -> list[Rect]:
    """Find white bands between panels: full-width rows first, then full-height columns."""
    width, height = src.size
    pixels = _normalized_pixels(src)
    row_flags = [
        _is_continuous(pixels[y * width:(y + 1) * width], _WHITE) for y in range(height)
    ]
    col_flags = [_is_continuous(pixels[x::width], _WHITE) for x in range(width)]
    rects = [Rect(0, start, width, end) for start, end in _gaps(row_flags)]
    rects.extend(Rect(start, 0, end, height) for start, end in _gaps(col_flags))
    return rects


def rotate_image(img: Image.Image) -> Image.Image:
    """Rotate the image by 90 degrees counter-clockwise."""
    return img.convert("RGBA").transpose(Image.Transpose.ROTATE_90)


def resize_image(src: Image.Image, new_width: int, new_height: int) -> Image.Image:
    """Resize with nearest-neighbour sampling taken from each pixel's top-left corner."""
    if new_width < 0 or new_height < 0:
        raise ValueError(f"invalid size {new_width}x{new_height}")
    src_width, src_height = src.size
    if src_width == 0 or src_height == 0:
        return Image.new("RGBA", (new_width, new_height), (0, 0, 0, 0))
    data = src.convert("RGBA").tobytes()
    stride = src_width * 4
    columns = [x * src_width // new_width for x in range(new_width)] if new_width else []
    rows: dict[int, bytes] = {}
    out = bytearray()
    for y in range(new_height):
        src_y = y * src_height // new_height
        if src_y not in rows:
            row = data[src_y * stride:(src_y + 1) * stride]
            rows[src_y] = b"".join(row[c * 4:c * 4 + 4] for c in columns)
        out += rows[src_y]
    return _from_bytes("RGBA", (new_width, new_height), bytes(out))


def rgba_to_gray(src: Image.Image) -> Image.Image:
    """Convert to grayscale with luminosity weights, truncating."""

    @lru_cache(maxsize=65536)
    def luminance(pixel: tuple[int, int, int, int]) -> int:
        r, g, b = _rgb8(pixel)
        return int(0.299 * r + 0.587 * g + 0.114 * b)

    values = bytes(luminance(p) for p in _rgba_pixels(src))
    return _from_bytes("L", src.size, values)


def compress_png(
    src: Image.Image,
    bin_threshold: int,
    resize_width: int,
    resize_height: int,
    max_inner_rects: int,
    min_content: int,
) -> Image.Image:
    """Binarize, strip empty bands, turn landscape pages upright and resize."""
    img = src
    if bin_threshold >= 0:
        img = binarize_image(src, bin_threshold)

    inner_borders = detect_inner_borders(img)
    if len(inner_borders) < max_inner_rects:
        content = get_remaining_rectangles(img, inner_borders)
        content_area = sum(rect.dx() * rect.dy() for rect in content)
        # The percentage is divided as an integer first, as the limit always was.
        limit = _trunc_div(min_content, 100) * resize_width * resize_height
        if float(content_area) > float(limit):
            img = assemble_image_from_rectangles(img, content)

    if img.width > img.height:
        img = rotate_image(img)

    return resize_image(img, resize_width, resize_height)