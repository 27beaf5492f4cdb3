"""
Setuptools build script for quickcmd.

This file allows installation of the ``quickcmd`` package via
``pip install .``.  It declares the required dependencies and
registers a console script entry point named ``wtf``.  When
installed, users can invoke the CLI with ``wtf`` from their shell.

Configuration is read from the environment and ``~/.quickcmd/config.yaml``.
"""

from setuptools import setup, find_packages

setup(
    name="quickcmd",
    version="0.1.0",
    description="Translate natural language into shell commands with a remote language model",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.8",
    install_requires=[
        "click>=7.0",
        "PyYAML>=5.4",
        "httpx>=0.24",
        "fastapi>=0.80",
        "pydantic>=1.10",
        "uvicorn>=0.20",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "wtf=quickcmd.cli:main",
        ],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
)
