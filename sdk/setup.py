"""Setup script for the storefront admin Python client"""
from setuptools import find_packages, setup

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="storefront-admin-client",
    version="0.1.0",
    description="Python client for the storefront admin session API, with session polling",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(include=["storefront_admin_client", "storefront_admin_client.*"]),
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.11",
    ],
    python_requires=">=3.11",
    install_requires=[
        "requests>=2.31.0",
    ],
)
