[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "zkvalida"
version = "0.1.0"
description = "Trace tables, bus interactions and constraint checks for the chips of a STARK-friendly virtual machine"
requires-python = ">=3.10"
dependencies = []
keywords = ["stark", "zero-knowledge", "air", "permutation-argument", "lookup", "trace", "babybear"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Science/Research",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Security :: Cryptography",
]

[project.optional-dependencies]
test = ["pytest", "hypothesis"]

[tool.hatch.build.targets.wheel]
packages = ["zkvalida"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
