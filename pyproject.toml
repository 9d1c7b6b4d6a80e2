[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "moonlight"
version = "0.1.0"
description = "Client-side control channel pieces for game streaming: field buffers, framing, AES-GCM sealing, message parsing, frame-loss tracking and port testing"
requires-python = ">=3.10"
dependencies = [
    "cryptography",
]
keywords = [
    "game-streaming",
    "control-stream",
    "aes-gcm",
    "network",
    "protocol",
]
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
    "Topic :: Games/Entertainment",
    "Topic :: System :: Networking",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["moonlight"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
