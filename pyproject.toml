[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "gbcore"
version = "0.1.0"
description = "A small Game Boy (DMG) CPU core with boot ROM, memory map and register model"
requires-python = ">=3.10"
dependencies = []
keywords = ["game boy", "emulator", "sm83", "lr35902", "cpu"]
classifiers = [
    "Development Status :: 2 - Pre-Alpha",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: System :: Emulators",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
gbcore = "gbcore.instructions:main"

[tool.hatch.build.targets.wheel]
packages = ["gbcore"]

[tool.pytest.ini_options]
addopts = "-ra"
