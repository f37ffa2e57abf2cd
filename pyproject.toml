[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "run68"
version = "0.1.0"
description = "Building blocks of a Human68k console emulator: MC68000 operand access and branches, DOS call tracing, IOCS services and host helpers"
requires-python = ">=3.10"
dependencies = []
keywords = ["human68k", "x68000", "m68k", "68000", "emulator", "iocs", "hupair"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Emulators",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["run68"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
