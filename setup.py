from setuptools import find_packages, setup

setup(
    name="zigfetch",
    version="0.1.0",
    description="Download and unpack the latest Zig compiler build",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    python_requires=">=3.11.4",
    install_requires=[
        "requests",
        "pick>=2.3",
        "PyYAML",
        "urllib3",
        "platformdirs",
        "rich",
    ],
    extras_require={
        "test": [
            "pytest",
            "pytest-mock",
        ],
    },
    entry_points={
        "console_scripts": [
            "zigfetch=zigfetch.cli:main",
        ],
    },
)
