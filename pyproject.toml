[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "dupescan"
version = "0.1.0"
description = "Building blocks for finding duplicate files and printing, summarizing, deleting, linking or deduplicating them"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "duplicates",
    "duplicate-files",
    "dedupe",
    "hard-links",
    "symlinks",
    "filesystem",
    "hash",
    "xxhash",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: POSIX",
    "Operating System :: POSIX :: Linux",
    "Operating System :: MacOS",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Filesystems",
    "Topic :: Utilities",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["dupescan"]

[tool.hatch.build.targets.sdist]
include = ["dupescan", "tests", "pyproject.toml", "README.md"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
