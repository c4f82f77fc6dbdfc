[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "smabacktest"
version = "0.1.0"
description = "Import OHLCV price data from CSV, run an SMA crossover backtest and export equity, trades and metrics."
requires-python = ">=3.10"
dependencies = []
keywords = [
    "backtesting",
    "trading",
    "sma",
    "moving-average",
    "ohlcv",
    "csv",
    "finance",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Education",
    "Intended Audience :: Financial and Insurance Industry",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Office/Business :: Financial :: Investment",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
smabacktest-benchmark = "smabacktest.benchmark:main"
smabacktest-sweep = "smabacktest.sweep:main"
smabacktest-goldens = "smabacktest.goldens:main"

[tool.hatch.build.targets.wheel]
packages = ["smabacktest"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
strict = true
