[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "mixgemm"
version = "1.0.0"
description = "Mixed-precision matrix multiplication (GEMM) with fused epilogues, bfloat16 conversions and attention helpers"
requires-python = ">=3.10"
dependencies = [
    "numpy",
]
keywords = [
    "gemm",
    "matrix multiplication",
    "bfloat16",
    "float16",
    "attention",
    "numpy",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Mathematics",
    "Topic :: Scientific/Engineering :: Artificial Intelligence",
]

[project.optional-dependencies]
test = [
    "pytest",
    "numpy",
]

[tool.hatch.build.targets.wheel]
packages = ["mixgemm"]

[tool.hatch.build.targets.sdist]
include = ["mixgemm", "tests", "README.md"]

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
ignore_missing_imports = true
