[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "minikern"
version = "0.1.0"
description = "Core pieces of a small teaching kernel: printf formatting, a debug console, frame allocation, ext2 reading, synchronisation primitives, process tables and ACPI configuration discovery"
requires-python = ">=3.10"
dependencies = []
keywords = ["kernel", "ext2", "snprintf", "synchronization", "acpi", "operating-system"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Education",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Operating System Kernels",
    "Topic :: System :: Filesystems",
    "Topic :: Education",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["minikern"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
