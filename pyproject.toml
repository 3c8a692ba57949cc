[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "wettorion-comms"
version = "1.0.0"
description = "Communications module for the Wettorion weather station: framed TCP packets to a backend, packet dispatch and a typed settings registry"
requires-python = ">=3.10"
dependencies = []
keywords = ["weather-station", "telemetry", "packets", "checksum", "fletcher-16", "settings", "eeprom"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Communications",
    "Topic :: System :: Networking",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
wettorion-comms = "wettorion_comms.main:main"

[tool.hatch.build.targets.wheel]
packages = ["wettorion_comms"]

[tool.hatch.build.targets.sdist]
include = ["wettorion_comms", "tests", "pyproject.toml", "README.md"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
