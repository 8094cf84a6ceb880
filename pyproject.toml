[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "contactqp"
version = "0.1.0"
description = "Contact classification, sticking/sliding modes and a dual active-set QP solver for quasi-static pushing"
requires-python = ">=3.10"
dependencies = [
    "numpy",
]
keywords = [
    "robotics",
    "contact",
    "friction cone",
    "quadratic programming",
    "manipulation",
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
    "Topic :: Scientific/Engineering",
    "Topic :: Scientific/Engineering :: Mathematics",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["contactqp"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
