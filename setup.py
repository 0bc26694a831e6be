"""
Setup script for FleetPilot.

This script handles the installation and packaging of the FleetPilot hybrid API client.
"""

from setuptools import setup, find_packages

# Read README
with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

# Read requirements
def read_requirements(filename):
    with open(filename, "r", encoding="utf-8") as f:
        return [line.strip() for line in f if line.strip() and not line.startswith("#")]

install_requires = read_requirements("requirements.txt")

setup(
    name="fleetpilot",
    version="1.0.0",
    author="FleetPilot Team",
    author_email="team@fleetpilot.dev",
    description="Hybrid API fallback and cost-control layer for trucking assistant services",
    long_description=long_description,
    long_description_content_type="text/markdown",
    url="https://github.com/yourusername/fleetpilot",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Internet :: WWW/HTTP",
        "Topic :: Utilities",
    ],
    python_requires=">=3.10",
    install_requires=install_requires,
    extras_require={
        "dev": read_requirements("requirements-dev.txt"),
        "build": ["build", "twine"],
    },
    entry_points={
        "console_scripts": [
            "fleetpilot=fleetpilot.main:main",
        ],
    },
    include_package_data=True,
    zip_safe=False,
    keywords="api fallback quota cache geolocation weather diagnostics trucking",
    project_urls={
        "Bug Reports": "https://github.com/yourusername/fleetpilot/issues",
        "Source": "https://github.com/yourusername/fleetpilot",
    },
)
