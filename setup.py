#!/usr/bin/env python
#
"""The setup.py file."""

import os
import sys

from setuptools import find_packages, setup
from setuptools.command.install import install

with open("src/blnet_tx/version.py") as fh:
    for line in fh:
        if line.strip().startswith("__version__"):
            VERSION = line.split("=")[-1].strip().strip('"')
            break

URL = "https://github.com/uvr16xx/uvr_blnet"

with open("README.md") as fh:
    LONG_DESCRIPTION = fh.read()


class VerifyVersionCommand(install):
    """Custom command to verify that the git tag matches our VERSION."""

    def run(self):
        tag = os.getenv("CIRCLE_TAG")
        if tag != VERSION:
            info = f"Git tag: {tag} does not match the version of this pkg: {VERSION}"
            sys.exit(info)


setup(
    name="uvr-blnet",
    description="A client for UVR1611/UVR61-3 controllers, via a BL-NET bridge.",
    keywords=["uvr1611", "uvr61-3", "blnet", "bl-net", "technische alternative"],
    url=URL,
    download_url=f"{URL}/archive/{VERSION}.tar.gz",
    install_requires=[
        "click>=8.1",
        "colorama>=0.4",
        "colorlog>=6.7",
        "paho-mqtt>=2.0",
        "voluptuous>=0.13",
    ],
    extras_require={
        "debug": ["debugpy"],
        "test": ["pytest>=7.4", "pytest-asyncio>=0.23", "PyYAML>=6.0"],
    },
    entry_points={
        "console_scripts": ["blnet-client=blnet_cli.client:main"],
    },
    long_description=LONG_DESCRIPTION,
    long_description_content_type="text/markdown",
    package_dir={"": "src"},
    packages=find_packages("src", exclude=["tests", "docs"]),
    version=VERSION,
    license="MIT",
    python_requires=">=3.11",
    classifiers=[
        "Development Status :: 3 - Alpha",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3.11",
        "Topic :: Home Automation",
    ],
    cmdclass={
        "verify": VerifyVersionCommand,
    },
)
