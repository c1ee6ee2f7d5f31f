[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "perpdesk"
version = "0.1.0"
description = "Perpetual futures position accounting, leverage tiers, risk checks and trading analytics"
requires-python = ">=3.10"
dependencies = []
keywords = ["perpetual", "futures", "margin", "leverage", "liquidation", "trading", "risk"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
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
test = ["pytest", "pytest-asyncio"]

[project.scripts]
perpdesk = "perpdesk.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["perpdesk"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
