[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "auralang"
version = "0.1.0"
description = "Compiler for the Aura language that emits LLVM IR and builds native executables with clang"
requires-python = ">=3.10"
dependencies = []
keywords = ["compiler", "llvm", "language", "aura"]
classifiers = [
    "Development Status :: 3 - Alpha",
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
auralang = "auralang.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["auralang"]

[tool.pytest.ini_options]
addopts = "-ra"
