[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "dtukit"
version = "0.1.0"
description = "Payload parsers and inverter models for Hoymiles HM, HMS and HMT micro-inverters"
requires-python = ">=3.10"
dependencies = []
keywords = ["hoymiles", "inverter", "solar", "dtu", "mqtt", "photovoltaic", "parser"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Home Automation",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["dtukit"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
