""" ecmultisig build script for setuptools.

"""

from setuptools import find_packages, setup  # type: ignore

import ecmultisig

with open("README.md", "r", encoding="ascii") as file_:
    longdescription = file_.read()

setup(
    name=ecmultisig.name,
    version=ecmultisig.__version__,
    license=ecmultisig.__license__,
    author=ecmultisig.__author__,
    author_email=ecmultisig.__author_email__,
    description="A library for EC-Schnorr multisignatures",
    long_description=longdescription,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    include_package_data=True,
    install_requires=["dataclasses-json"],
    extras_require={"test": ["pytest"]},
    keywords=(
        "elliptic-curves schnorr multisignature multisig secp256k1 "
        "proof-of-possession consensus"
    ),
    python_requires=">=3.7",
    classifiers=[
        "Programming Language :: Python :: 3.7",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Natural Language :: English",
        "Operating System :: OS Independent",
        "Topic :: Security :: Cryptography",
        "Topic :: Software Development :: Libraries :: Python Modules",
    ],
)
