[build-system]
requires = ["hatchling>=1.18"]
build-backend = "hatchling.build"

[project]
name = "gaasqd"
version = "0.1.0"
description = "Photon-tracing simulation, scope-data conversion and waveform reconstruction for GaAs quantum-dot sensors"
requires-python = ">=3.10"
dependencies = [
    "numpy>=1.22",
]
keywords = [
    "gaas",
    "quantum dots",
    "scintillator",
    "oscilloscope",
    "tektronix",
    "waveform",
    "photon tracing",
    "monte carlo",
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
    "pytest>=7",
]

[project.scripts]
gaasqd-quicksim = "gaasqd.quicksim:main"
gaasqd-convert-scope = "gaasqd.scopecsv:main"
gaasqd-convert-tek = "gaasqd.tekdata:main"
gaasqd-convert-frames = "gaasqd.tekframes:main"

[tool.hatch.build.targets.wheel]
packages = ["gaasqd"]

[tool.hatch.build.targets.sdist]
include = [
    "gaasqd",
    "tests",
    "pyproject.toml",
]

[tool.pytest.ini_options]
testpaths = ["tests"]
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
