from setuptools import setup, find_packages

setup(
    name="dorc",
    version="0.1.0",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    install_requires=[
        "pydantic>=2.0",
        "pyyaml>=6.0",
        "click>=8.0",
        "tenacity>=8.3",
        "docker>=6.0",
        "requests>=2.28",
        "httpx>=0.24",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "dorc=dorc.CLI.main:main",
        ],
    },
)
