#!/usr/bin/env python3
"""
Setup script for Aether

Install with:
    pip install -e .

With test and lint tools:
    pip install -e ".[dev]"
"""

from setuptools import setup, find_packages
from pathlib import Path

# Read README
readme_path = Path(__file__).parent / "README.md"
long_description = ""
if readme_path.exists():
    long_description = readme_path.read_text(encoding="utf-8")

requirements = [
    "anthropic>=0.40.0",
    "httpx>=0.26.0",
    "rich>=13.7.0",
    "prompt-toolkit>=3.0.43",
    "aiofiles>=23.2.1",
    "python-dotenv>=1.0.0",
    "pydantic-settings>=2.1.0",
]

setup(
    name="aether",
    version="1.0.0",
    description="Aether - stream AI-generated web apps into a project directory",
    long_description=long_description,
    long_description_content_type="text/markdown",
    license="MIT",
    packages=find_packages(include=["aether", "aether.*"]),
    python_requires=">=3.9",
    install_requires=requirements,
    extras_require={
        "dev": [
            "pytest>=7.4.0",
            "pytest-asyncio>=0.23.0",
            "black>=24.1.0",
            "isort>=5.13.0",
            "mypy>=1.8.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "aether=aether.cli.main:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Software Development :: Code Generators",
    ],
    keywords="ai cli code-generation claude anthropic streaming",
)
