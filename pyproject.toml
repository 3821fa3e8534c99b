[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "barscan"
version = "0.1.0"
description = "Status-bar data scanning: JSON path queries, file and command scanners, flow-grid layout, MPD session state and a handler registry"
requires-python = ">=3.10"
dependencies = []
keywords = ["status bar", "scanner", "json path", "mpd", "desktop"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: End Users/Desktop",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Desktop Environment",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["barscan"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
