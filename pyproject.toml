[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "rtmpwire"
version = "0.1.0"
description = "RTMP wire protocol building blocks: handshake, chunk stream framing and message codecs"
requires-python = ">=3.10"
dependencies = []
keywords = ["rtmp", "streaming", "handshake", "chunk", "amf0", "video"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Multimedia :: Video",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["rtmpwire"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
