"""
PolyEvo package configuration.

The repository root is the ``polyevo`` package itself.
Install with: pip install -e ".[dev]"
"""

from setuptools import setup

setup(
    name="polyevo",
    version="0.1.0",
    description="Parallel genetic algorithm that approximates images with translucent polygons",
    license="MIT",
    python_requires=">=3.11",
    package_dir={
        "polyevo": ".",
        "polyevo.cli": "cli",
        "polyevo.data": "data",
        "polyevo.genome": "genome",
        "polyevo.monitoring": "monitoring",
    },
    packages=[
        "polyevo",
        "polyevo.cli",
        "polyevo.data",
        "polyevo.genome",
        "polyevo.monitoring",
    ],
    install_requires=[
        # Numerics & imaging
        "numpy>=2.1.0",
        "Pillow>=10.4.0",

        # Configuration & logging
        "pyyaml>=6.0.2",
        "loguru>=0.7.2",

        # Validation
        "pydantic>=2.9.0",

        # CLI
        "click>=8.1.7",
    ],
    extras_require={
        "dev": [
            "pytest>=8.3.0",
            "pytest-cov>=5.0.0",
            "pytest-mock>=3.14.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "polyevo=polyevo.cli.commands:cli",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Intended Audience :: Science/Research",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Programming Language :: Python :: 3.13",
        "Topic :: Scientific/Engineering :: Artificial Intelligence",
        "Topic :: Multimedia :: Graphics",
    ],
)
