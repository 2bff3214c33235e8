[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "prettysh"
version = "0.1.0"
description = "Execution core of a small POSIX-style shell: syntax trees, dollar expansion, quote removal, redirections, here-documents, pipelines and command lists"
requires-python = ">=3.10"
keywords = ["shell", "pipeline", "heredoc", "redirection", "expansion"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: System Shells",
]
dependencies = []

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["prettysh"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]
