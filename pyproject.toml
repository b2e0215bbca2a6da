[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "arbscout"
version = "0.1.0"
description = "On-chain price, pool-state and gas data for spotting ETH/USDC arbitrage between Ethereum and Base"
requires-python = ">=3.10"
keywords = [
    "ethereum",
    "base",
    "arbitrage",
    "uniswap",
    "aerodrome",
    "json-rpc",
    "multicall",
    "gas",
    "defi",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Financial and Insurance Industry",
    "Operating System :: OS Independent",
    "Framework :: AsyncIO",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Office/Business :: Financial :: Investment",
]
dependencies = [
    "httpx>=0.24",
    "python-dotenv>=1.0",
    "pycryptodome>=3.18",
]

[project.optional-dependencies]
test = [
    "pytest>=7.4",
    "pytest-asyncio>=0.21",
    "respx>=0.20",
]

[tool.hatch.build.targets.wheel]
packages = ["arbscout"]

[tool.hatch.build.targets.sdist]
include = ["arbscout", "tests", "pyproject.toml"]

[tool.pytest.ini_options]
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
