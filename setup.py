"""
Setup script for exengine (universal exercise engine).

The engine turns heterogeneous raw exercises (multiple answers, drag and
drop, gap fill, highlight, sequencing, ...) into one canonical definition
format, checks learner answers against them and drives exercise sessions:

1. Adapter layer - raw exercise JSON -> canonical definitions
2. Validation engine - per-kind answer correctness
3. Session controller - present / submit / feedback / advance state machine

The 'exengine' command checks, normalizes and plays exercise files.
"""

from setuptools import find_namespace_packages, setup

setup(
    name="exengine",
    version="0.1.0",
    description="Universal exercise engine: normalize, validate and run learning exercises",
    long_description=open("README.md", encoding="utf-8").read() if __import__("os").path.exists("README.md") else "",
    long_description_content_type="text/markdown",
    packages=find_namespace_packages(include=["src", "src.*"]),
    py_modules=["config"],
    python_requires=">=3.10",
    install_requires=[
        # CLI
        "typer>=0.9.0",
        "rich>=13.0.0",
        # Config & Validation
        "pydantic>=2.0.0",
        "pydantic-settings>=2.0.0",
        # Logging
        "loguru>=0.7.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
            "ruff>=0.1.0",
            "mypy>=1.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "exengine=src.cli.main:run",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Intended Audience :: Developers",
        "Intended Audience :: Education",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Education",
        "Topic :: Education :: Computer Aided Instruction (CAI)",
    ],
    keywords="learning exercises education assessment cli",
)
