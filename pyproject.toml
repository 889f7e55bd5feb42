[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "rockfind"
version = "0.1.0"
description = "Building blocks for phase-space halo finding: a spatial tree, friends-of-friends grouping, cosmological distances, periodic bounds and run configuration."
requires-python = ">=3.10"
dependencies = []
keywords = ["astronomy", "cosmology", "halo-finder", "friends-of-friends", "kd-tree"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Astronomy",
    "Topic :: Scientific/Engineering :: Physics",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["rockfind"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
