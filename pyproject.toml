[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "jxlcore"
version = "0.1.0"
description = "Pure-Python building blocks of a JPEG XL decoder: bit reading, header fields, permutations, image buffers and compressed ICC profiles"
requires-python = ">=3.10"
dependencies = []
keywords = ["jpeg-xl", "jxl", "image", "icc", "decoder", "bitstream"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Multimedia :: Graphics :: Graphics Conversion",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest", "hypothesis"]

[tool.hatch.build.targets.wheel]
packages = ["jxlcore"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
