from pathlib import Path

from setuptools import setup, find_packages

setup(
    name="tooldjinn",
    version="0.1.0",
    description="Compact, token-budgeted and queryable output for git and dotnet commands",
    author="phisanti",
    author_email="tisalon@outlook.com",
    license="MIT",
    packages=find_packages(include=["tooldjinn", "tooldjinn.*"]),
    install_requires=[
        "typer>=0.9.0",
        "rich>=13.0.0",
        "python-dotenv>=1.0.0",
        "pydantic>=2.0",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": [
            "tool-djinn=tooldjinn.main:tool_djinn",
        ],
    },
    python_requires=">=3.10",
    long_description=Path(__file__).with_name("README.md").read_text(encoding="utf-8"),
    long_description_content_type="text/markdown",
)
