"""
Setup script for dockhttp, an HTTP/1.1 client for the Docker daemon socket.
"""

from setuptools import setup

setup(
    name="dockhttp",
    version="0.1.0",
    description="Minimal HTTP/1.1 client for the Docker daemon's Unix socket",
    packages=["dockhttp", "dockhttp.cli", "dockhttp.clients", "dockhttp.utils"],
    include_package_data=True,
    install_requires=[
        "click>=8.0.0",
        "rich>=12.0.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "dockhttp=dockhttp.cli.main:main",
        ],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Intended Audience :: System Administrators",
        "Operating System :: POSIX",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.11",
    ],
    python_requires=">=3.11",
)
