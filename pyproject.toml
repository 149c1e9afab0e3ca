[build-system]
requires = ["setuptools>=61.0"]
build-backend = "setuptools.build_meta"

[project]
name = "granmpm"
version = "0.1.0"
description = "Material point method building blocks for elastoplastic and granular materials"
requires-python = ">=3.10"
dependencies = [
    "numpy",
]
keywords = [
    "material point method",
    "mpm",
    "granular",
    "elastoplasticity",
    "modified cam-clay",
    "return mapping",
    "ply",
]
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
    "Topic :: Scientific/Engineering :: Physics",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.setuptools.packages.find]
include = ["granmpm*"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
