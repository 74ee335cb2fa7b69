[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "karlyrics"
version = "0.1.0"
description = "Karaoke lyrics projects: LRC, UltraStar, PowerKaraoke, KOK and KaraokeBuilder import, LRC and UltraStar export, and frame rendering"
requires-python = ">=3.10"
dependencies = [
    "pillow",
]
keywords = ["karaoke", "lyrics", "lrc", "ultrastar", "powerkaraoke", "rendering"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: End Users/Desktop",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Multimedia :: Sound/Audio :: Editors",
    "Topic :: Text Processing",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["karlyrics"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
