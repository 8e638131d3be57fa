[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "usermgr"
version = "0.1.0"
description = "User profile records with a compact binary layout, an instruction codec and an in-memory account processor"
requires-python = ">=3.10"
dependencies = []
keywords = ["user-management", "profiles", "accounts", "serialization", "binary-format"]
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
    "Topic :: Software Development :: Libraries",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["usermgr"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
