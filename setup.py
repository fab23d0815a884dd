#!/usr/bin/env python

from setuptools import setup


VERSION = "0.1a1"

setup(
    name="locpath",
    version=VERSION,
    description="XPath 1.0 location paths over ordered trees.",
    license="AGPL-3.0-or-later",
    packages=["_locpath", "_locpath.plugins", "_locpath.xpath", "locpath"],
    python_requires=">=3.10",
    install_requires=[
        "cssselect",
        "lxml",
    ],
    extras_require={"test": ["pytest"]},
)
