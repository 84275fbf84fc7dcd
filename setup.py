"""Setup configuration for SecretCache."""

import os
import re

from setuptools import find_packages, setup

here = os.path.abspath(os.path.dirname(__file__))

# Read version without importing the package (its dependencies may not be installed yet)
with open(os.path.join(here, "secretcache", "__init__.py"), encoding="utf-8") as f:
    metadata = dict(re.findall(r'^__(version|author)__ = "([^"]+)"', f.read(), re.MULTILINE))

with open(os.path.join(here, "README.md"), encoding="utf-8") as f:
    long_description = f.read()

setup(
    name="secretcache-cli",
    version=metadata.get("version", "0.1.0"),
    description="Rotation-aware, encrypted client-side cache for AWS Secrets Manager",
    long_description=long_description,
    long_description_content_type="text/markdown",
    author=metadata.get("author", "SecretCache Team"),
    keywords="aws secrets-manager cache rotation encryption cli",
    packages=find_packages(exclude=["tests", "tests.*"]),
    package_data={"secretcache": ["templates/*.j2"]},
    python_requires=">=3.8",
    install_requires=[
        "click>=8.0.0",
        "pyyaml>=6.0",
        "jinja2>=3.0.0",
        "cryptography>=3.4.0",
        "jsonschema>=4.0.0",
        "boto3>=1.26.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
            "ruff>=0.12.0",
            "mypy>=0.991",
        ],
    },
    entry_points={
        "console_scripts": [
            "secretcache=secretcache.cli:cli",
        ],
    },
)
