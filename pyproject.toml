[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "rasvendor"
version = "0.1.0"
description = "Decoders for vendor-specific (non-standard) RAS error sections from HiSilicon, JaguarMicro and Yitian platforms"
requires-python = ">=3.10"
dependencies = []
keywords = ["ras", "reliability", "hardware errors", "cper", "error decoding", "sqlite"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: System Administrators",
    "Intended Audience :: Developers",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Monitoring",
    "Topic :: System :: Hardware",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["rasvendor"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
