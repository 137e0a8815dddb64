[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "mangacompressor"
version = "0.1.0"
description = "Shrink CBZ manga archives for e-readers by cutting out page gutters, binarizing, rotating and resizing pages"
requires-python = ">=3.10"
dependencies = [
    "pillow",
]
keywords = ["cbz", "manga", "comics", "e-reader", "image", "compression"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: End Users/Desktop",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Multimedia :: Graphics :: Graphics Conversion",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pillow",
]

[project.scripts]
mangacompressor = "mangacompressor.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["mangacompressor"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
