[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "mipsos"
version = "0.1.0"
description = "MIPS COFF and NOFF object-file tools, a simulated MIPS memory, and a sector-based teaching file system"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "mips",
    "coff",
    "noff",
    "object file",
    "file system",
    "indirect blocks",
    "operating systems",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Education",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Emulators",
    "Topic :: System :: Filesystems",
    "Topic :: Education",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
coff2flat = "mipsos.convert:flat_main"
coff2noff = "mipsos.convert:noff_main"

[tool.hatch.build.targets.wheel]
packages = ["mipsos"]

[tool.hatch.build.targets.sdist]
include = ["mipsos", "tests", "pyproject.toml", "README.md"]

[tool.pytest.ini_options]
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
