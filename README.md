# mangacompressor

`mangacompressor` makes CBZ manga archives smaller and easier to read on
e-readers. It reads every entry of an archive and writes a new archive:

- **PNG pages** (names ending in `.png`): optionally binarized to pure black
  and white. Nearly empty white bands running across the whole page (rows)
  or down the whole page (columns) are detected; if there are fewer of them
  than a limit, the rest of the page is cut into pieces that are stacked on
  top of each other. A page wider than it is tall is then rotated 90 degrees
  counter-clockwise, and every page is resized to the target size with
  nearest-neighbour sampling. The result is saved as PNG.
- **JPEG pages** (names ending in `.jpg` or `.jpeg`): converted to grayscale
  and saved again as JPEG at quality 20. They are not resized.

Entries of any other kind are left out of the new archive.

## Installation

```
pip install .
```

## Command line

```
mangacompressor --files volume1.cbz,volume2.cbz --binarize 65 --resize 1236x1648 --output out/
```

The first `.cbz` in each input's file name is replaced by `_modified.cbz`,
so `volume1.cbz` is written to `out/volume1_modified.cbz`. The output
directory must already exist. Every option may also be given with a single
dash (`-files`, `-binarize`, ...).

| Option | Default | Meaning |
| --- | --- | --- |
| `--files` | (required) | Comma-separated list of CBZ files; spaces around names are ignored |
| `--binarize` | `-1` | Binarization threshold percentage, 0–100; `-1` turns binarization off |
| `--resize` | `1236x1648` | Size of the PNG pages, as `<width>x<height>` |
| `--max-inner-rects` | `9` | If this many bands or more are found, the page is not cut up |
| `--min-content` | `10` | Content limit, see below |
| `--output` | `.` | Directory for the new CBZ files |

The program stops with a message if `--files` is empty, if `--binarize` is
outside -1 to 100, or if `--resize` is not of the form `<width>x<height>`.
If one archive cannot be read or a page cannot be decoded, the error is
printed and the next archive is processed.

About `--min-content`: the cut-up page is used only when the area left after
removing the bands is larger than `(min_content // 100) * width * height`,
with the percentage divided as a whole number. Any value below 100
therefore accepts every page that has some content left.

## How bands are found

A row or column counts as empty when fewer than 20 of its pixels are
something other than pure white. A run of empty rows (or columns) becomes a
band when it is longer than 15 lines, or when it reaches the bottom (or
right) edge of the page. Rows are looked at first, then columns.

## Library use

```python
from mangacompressor.cbz import process_cbz_file

path = process_cbz_file("volume1.cbz", 65, 1236, 1648, 9, 10, "out")
print(path)
```

`mangacompressor.cli` holds `main(argv=None)` and `parse_resize`, which
turns `"1236x1648"` into `(1236, 1648)`.

The page operations are in `mangacompressor.imaging`. They take and return
Pillow images and describe regions with `Rect`, a half-open rectangle with
`min_x`, `min_y`, `max_x`, `max_y`, and the methods `dx()`, `dy()` and
`contains(x, y)`. The functions are:

- `binarize_image(img, threshold_percentage)`
- `rgba_to_gray(src)`
- `copy_image(src)`, `crop_image(src, rect)`
- `remove_rectangle(src, rect, background)`: fills `rect` with a colour
- `detect_outer_border(img)`: bounds of the non-white pixels
- `is_line_continuous(src, color, line, horizontal)`
- `detect_inner_borders(src)`: the white bands described above
- `get_remaining_rectangles(img, rects)`: the parts not covered by `rects`
- `assemble_image_from_rectangles(src, rects)`: stacks regions, using the
  width of the first one
- `rotate_image(img)`, `resize_image(src, new_width, new_height)`
- `compress_png(src, bin_threshold, resize_width, resize_height, max_inner_rects, min_content)`

## What it does not do

The package only rewrites the PNG and JPEG pages it finds. It does not keep
other archive entries such as metadata files, it does not resize JPEG pages,
and it does not create the output directory.