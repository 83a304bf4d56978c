"""Setup script for Pareto Select"""

from setuptools import find_packages, setup

with open("requirements.txt") as f:
    requirements = [
        line.strip() for line in f if line.strip() and not line.startswith("#")
    ]

setup(
    name="pareto-select",
    version="0.1.0",
    description="Multi-objective Pareto selection engine for evolutionary prompt optimization",
    packages=find_packages(exclude=["tests*"]),
    python_requires=">=3.9",
    install_requires=requirements,
    entry_points={
        "console_scripts": ["pareto-select=pareto_select.cli:main"],
    },
    extras_require={
        "dev": ["pytest", "pytest-mock", "black", "isort", "mypy"],
    },
)
