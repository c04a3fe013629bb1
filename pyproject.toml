[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "pyspy"
version = "0.1.0"
description = "Building blocks for sampling profilers of Python processes: CPython struct layouts, stack walking and speedscope export"
requires-python = ">=3.10"
dependencies = []
keywords = ["profiler", "sampling", "stack-trace", "speedscope", "debugger", "cpython"]
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
    "Topic :: Software Development :: Debuggers",
    "Topic :: System :: Monitoring",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["pyspy"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
