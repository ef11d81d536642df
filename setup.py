"""
docstore setup.py — Package configuration and CLI entry point.
"""

from setuptools import find_packages, setup

setup(
    name="docstore",
    version="1.0.0",
    description="docstore — versioned, name-addressable document storage",
    packages=find_packages(include=["docstore", "docstore.*"]),
    python_requires=">=3.11",
    entry_points={
        "console_scripts": [
            "docstore=docstore.cli:main",
        ],
    },
    install_requires=[
        "sqlalchemy>=2.0",
        "psycopg2-binary>=2.9",
        "pydantic>=2.5",
        "pyyaml>=6.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4",
        ],
    },
)
