[build-system]
requires = ["setuptools>=61"]
build-backend = "setuptools.build_meta"

[project]
name = "artcard"
version = "0.1.0"
description = "Tools for ART time card manufacturing EEPROM data and the oscillatord monitoring socket"
requires-python = ">=3.10"
dependencies = []
keywords = ["eeprom", "time card", "oscillator", "ptp", "monitoring", "manufacturing"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: System Administrators",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Hardware",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
art-eeprom-format = "artcard.formatter:format_main"
art-eeprom-reformat = "artcard.formatter:reformat_main"
art-monitoring-client = "artcard.monitoring_client:main"

[tool.setuptools]
packages = ["artcard"]

[tool.pytest.ini_options]
addopts = "-ra"
