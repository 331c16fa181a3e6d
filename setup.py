# setup.py (top-level)
from __future__ import annotations

import re
from pathlib import Path

from setuptools import find_packages, setup

ROOT = Path(__file__).resolve().parent
PKG_NAME = "PV_Shading_Model"
PKG_DIR = ROOT / PKG_NAME

def read_version() -> str:
    # single source of truth is the package __init__
    text = (PKG_DIR / "__init__.py").read_text(encoding="utf-8")
    match = re.search(r'^__version__\s*=\s*"([^"]+)"', text, re.MULTILINE)
    if match is None:
        raise RuntimeError(f"Cannot find __version__ in {PKG_DIR / '__init__.py'}")
    return match.group(1)

# ----------------------------------------------------------------------------
# Setup
# ----------------------------------------------------------------------------

setup(
    name=PKG_NAME,
    version=read_version(),
    description="Partial-shading simulation of series-wired PV cell strings with bypass diodes",
    packages=find_packages(include=[PKG_NAME, f"{PKG_NAME}.*"]),
    package_data={PKG_NAME: ["parameters/*.json"]},
    include_package_data=True,
    python_requires=">=3.10",
    install_requires=[
        "numpy",
        "matplotlib",
        "tqdm",
    ],
    extras_require={
        "test": ["pytest"],
    },
)
