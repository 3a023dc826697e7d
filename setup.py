from setuptools import setup, find_packages


setup(
    name="tarme",
    version="0.1",
    packages=find_packages(include=["tarme", "tarme.*"]),
    description="Create and extract classic fixed-header TAR archives.",
    author="tarme contributors",
    python_requires=">=3.8",
    install_requires=[],
    entry_points={
        "console_scripts": [
            "tarme=tarme.cli:main",
        ]
    },
)
