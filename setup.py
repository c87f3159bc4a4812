#!/usr/bin/env python3
"""
Vocora Setup Script
"""

from setuptools import setup, find_packages
import pathlib

# Get the long description from the README file
HERE = pathlib.Path(__file__).parent
long_description = (HERE / "README.md").read_text(encoding='utf-8')


# Read requirements
def read_requirements():
    with open(HERE / 'requirements.txt') as f:
        return [line.strip() for line in f if line.strip() and not line.startswith('#')]


setup(
    name="vocora",
    version="1.0.0",
    description="Vocabulary practice with AI-generated stories and hover definitions",
    long_description=long_description,
    long_description_content_type="text/markdown",
    license="MIT",

    # Classifiers help users find your project by categorizing it
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Education",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Education",
        "Topic :: Text Processing :: Linguistic",
    ],

    keywords="language-learning vocabulary story-generation flask",

    # Package discovery
    packages=find_packages(exclude=["tests", "tests.*"]),
    py_modules=["api_server"],
    python_requires=">=3.9",

    # Dependencies
    install_requires=read_requirements(),

    # Optional dependencies
    extras_require={
        "dev": [
            "pytest>=7.4.0",
            "pytest-cov>=4.1.0",
            "black>=23.7.0",
            "isort>=5.12.0",
            "flake8>=6.0.0",
            "mypy>=1.5.0",
        ],
    },

    # Console scripts
    entry_points={
        "console_scripts": [
            "vocora=vocora.cli:main",
            "vocora-api=api_server:main",
        ],
    },
)
