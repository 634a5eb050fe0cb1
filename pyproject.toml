[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "ffzap"
version = "1.1.2"
description = "A multithreaded command line tool that runs ffmpeg on many media files in parallel."
requires-python = ">=3.10"
keywords = ["ffmpeg", "media-processing", "cli", "audio-conversion", "video-conversion"]
classifiers = [
    "Development Status :: 5 - Production/Stable",
    "Environment :: Console",
    "Intended Audience :: End Users/Desktop",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Multimedia :: Video :: Conversion",
    "Topic :: Multimedia :: Sound/Audio :: Conversion",
]
dependencies = [
    "tqdm",
    "platformdirs",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
ffzap = "ffzap.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["ffzap"]

[tool.pytest.ini_options]
addopts = "-ra"
