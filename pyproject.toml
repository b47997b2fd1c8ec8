[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "dtulink"
version = "0.1.0"
description = "Request frames, response parsers and inverter state for Hoymiles HM-series micro inverters"
requires-python = ">=3.10"
dependencies = []
keywords = ["hoymiles", "inverter", "solar", "photovoltaic", "nrf24", "mqtt", "dtu", "crc"]
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
    "Topic :: Home Automation",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["dtulink"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
