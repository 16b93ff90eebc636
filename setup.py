from setuptools import find_packages, setup

setup(
    name="pathwatcher",
    version="0.1.0",
    description="Watch configured files and directories and log changes as they happen",
    author="Araray Velho",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.8",
    install_requires=[
        "click",
        "pyyaml",
        "rich",
        "watchdog>=3.0"
    ],
    extras_require={
        "test": [
            "pytest"
        ]
    },
    entry_points={
        "console_scripts": [
            "pathwatcher=pathwatcher.cli:main"
        ]
    },
)
