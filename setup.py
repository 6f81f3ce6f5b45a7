#!/usr/bin/env python3
# =============================================================================
#  turlang - setup.py
#
#  Metadata for the turlang package.  The version lives in
#  turlang/__init__.py and runtime requirements in requirements.txt.
#
#  Typical use:
#      pip install -e ".[dev]"
#      python -m pytest
# =============================================================================

from __future__ import annotations

import re
from pathlib import Path

from setuptools import setup, find_packages

_HERE = Path(__file__).resolve().parent


def _read_version() -> str:
    """Extract ``__version__`` from turlang/__init__.py."""
    init = _HERE / "turlang" / "__init__.py"
    text = init.read_text(encoding="utf-8")
    match = re.search(r'^__version__(?::\s*str)?\s*=\s*"([^"]+)"', text, re.MULTILINE)
    if match:
        return match.group(1)
    return "0.0.0"


def _read_long_description() -> str:
    """Read README.md for the long description."""
    readme = _HERE / "README.md"
    if readme.exists():
        return readme.read_text(encoding="utf-8")
    return ""


def _read_requirements() -> list[str]:
    """Read requirements.txt if it exists."""
    req_file = _HERE / "requirements.txt"
    if req_file.exists():
        lines = req_file.read_text(encoding="utf-8").splitlines()
        return [
            ln.strip()
            for ln in lines
            if ln.strip() and not ln.strip().startswith("#")
        ]
    return []


setup(
    name="turlang",
    version=_read_version(),
    description=(
        "A declarative language for single- and multi-tape Turing machines: "
        "parser, static checks and a deterministic execution engine."
    ),
    long_description=_read_long_description(),
    long_description_content_type="text/markdown",
    license="MIT",
    author="turlang contributors",
    python_requires=">=3.10",
    packages=find_packages(
        include=[
            "turlang",
            "turlang.*",
        ],
        exclude=[
            "tests",
            "tests.*",
            "examples",
            "examples.*",
        ],
    ),
    package_data={
        "turlang": ["py.typed"],
    },
    install_requires=_read_requirements(),
    extras_require={
        "dev": [
            "pytest>=7.0",
            "pytest-cov>=4.0",
            "ruff>=0.4",
            "mypy>=1.10",
            "black>=24.0",
            "isort>=5.13",
        ],
    },

    entry_points={
        "console_scripts": [
            "turlang=turlang.__main__:main",
        ],
    },

    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Intended Audience :: Education",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Programming Language :: Python :: 3.13",
        "Topic :: Education",
        "Topic :: Software Development :: Interpreters",
        "Typing :: Typed",
    ],
    keywords=[
        "turing-machine",
        "automata",
        "interpreter",
        "dsl",
        "busy-beaver",
    ],
    zip_safe=False,
)
