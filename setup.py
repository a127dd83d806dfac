"""Setup script for CW Contest Logger."""

from setuptools import find_packages, setup

setup(
    name="cw-contest-logger",
    version="1.0.0",
    description="Contest log engine: ADIF codec, spot parsing, grid geodesy and scoring",
    python_requires=">=3.11",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "sqlmodel>=0.0.14",
        "pydantic>=2.0",
        "platformdirs>=3.0",
        "typer>=0.9",
        "rich>=13.0",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": [
            "cw-contest-logger=cw_contest_logger.cli:main",
        ],
    },
    zip_safe=False,
)
