#!/usr/bin/env python3

import os
from setuptools import setup, find_namespace_packages

install_requires = [
    "colorama",  # for colored text
]

extras_require = {
    "test": ["pytest"],
}

VERSION_FILE = os.path.join(os.path.dirname(os.path.abspath(__file__)), "VERSION.txt")

with open(VERSION_FILE) as f:
    version = f.read().strip()

setup(
    name="mtdelay",
    version=version,
    description="Callback flow control (fan-out and sequential steps) on top of asyncio",
    author="Minh-Tri Pham",
    packages=find_namespace_packages(include=["mt.*"]),
    install_requires=install_requires,
    extras_require=extras_require,
    python_requires=">=3.8",
    license="MIT",
)
