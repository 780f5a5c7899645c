[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "hatscan"
version = "0.6.0"
description = "Byte-signature pattern scanning for binary data, with helpers for PE images, memory maps and vtable lookup"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "signature",
    "pattern",
    "scanner",
    "binary",
    "reverse-engineering",
    "pe",
    "vtable",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
hatscan = "hatscan.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["hatscan"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]
