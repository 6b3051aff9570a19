[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "batchsched"
version = "0.5.0"
description = "Core data model for a batch scheduler: resources, tasks, jobs, queues, nodes and cluster snapshots"
requires-python = ">=3.10"
dependencies = []
keywords = ["scheduler", "batch", "gang-scheduling", "cluster", "resources", "pods"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Distributed Computing",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["batchsched"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
