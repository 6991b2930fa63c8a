# Copyright (C) 2022-2025, Pyronear.

# This program is licensed under the Apache License 2.0.
# See LICENSE or go to <https://opensource.org/licenses/Apache-2.0> for full license details.


import os
from pathlib import Path

from setuptools import find_packages, setup

PKG_NAME = "stream_relay_api"
VERSION = os.getenv("BUILD_VERSION", "0.1.0.dev0")


if __name__ == "__main__":
    print(f"Building wheel {PKG_NAME}-{VERSION}")

    cwd = Path(__file__).parent.absolute()
    pkg_dir = cwd.joinpath(PKG_NAME)

    with open(pkg_dir.joinpath("version.py"), "w", encoding="utf-8") as f:
        f.write(f"__version__ = '{VERSION}'\n")

    setup(
        name=PKG_NAME.replace("_", "-"),
        version=VERSION,
        packages=find_packages(include=[PKG_NAME, f"{PKG_NAME}.*"]),
        python_requires=">=3.9",
        install_requires=[
            "fastapi>=0.100.0",
            "pydantic>=2.0",
            "uvicorn>=0.23.0",
            "requests>=2.31.0",
            "python-dotenv>=1.0.0",
        ],
        extras_require={
            "test": [
                "pytest>=7.3.2",
                "httpx>=0.24.0",
            ],
        },
    )
