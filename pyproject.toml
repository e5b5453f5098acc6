[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "bonoboc"
version = "0.1.0"
description = "A small compiler for the Bonobo language that emits x86-64 NASM assembly"
requires-python = ">=3.10"
dependencies = []
keywords = ["compiler", "assembly", "x86-64", "nasm", "pratt-parser"]
classifiers = [
    "Development Status :: 2 - Pre-Alpha",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Compilers",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
bonoboc = "bonoboc.compiler:main"

[tool.hatch.build.targets.wheel]
packages = ["bonoboc"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
