[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "tokencore"
version = "0.1.0"
description = "Core of a security token: CTAPHID framing, APDU units, PIN storage and file-system CRC"
requires-python = ">=3.10"
dependencies = []
keywords = ["ctaphid", "fido", "apdu", "smart card", "pin", "security token", "crc32"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Security",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["tokencore"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
