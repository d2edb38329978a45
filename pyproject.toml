[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "lexforge"
version = "1.0.0"
description = "Build table-driven lexers from regular expressions via NFA-to-DFA construction, with minimization and code emission."
requires-python = ">=3.10"
dependencies = []
keywords = [
    "lexer",
    "scanner",
    "tokenizer",
    "regex",
    "nfa",
    "dfa",
    "hopcroft",
    "code-generation",
    "graphviz",
]
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
    "Topic :: Software Development :: Code Generators",
    "Topic :: Software Development :: Compilers",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["lexforge"]

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
