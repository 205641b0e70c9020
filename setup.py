from setuptools import setup, find_packages

setup(
    name="level_importer",
    version="1.0.0",
    packages=find_packages(),
    install_requires=[
        "pandas>=1.3.0",
        "numpy>=1.20.0",
        "openpyxl>=3.0.0",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": [
            "level-importer=level_importer.cli.main:main",
        ],
    },
    python_requires=">=3.8",
    author="Level Importer",
    description="Reconciles level tables with the levels of a building document",
)
