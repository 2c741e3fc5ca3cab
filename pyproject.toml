[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "devshield"
version = "0.1.0"
description = "Run several security scanners over a project and merge their findings into one SARIF, JSON and HTML report."
requires-python = ">=3.10"
dependencies = [
    "jinja2",
]
keywords = [
    "security",
    "devsecops",
    "sast",
    "sca",
    "iac",
    "sarif",
    "semgrep",
    "trivy",
    "tfsec",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Security",
    "Topic :: Software Development :: Quality Assurance",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
devshield = "devshield.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["devshield"]

[tool.hatch.build.targets.sdist]
include = [
    "devshield",
    "tests",
    "pyproject.toml",
]

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
