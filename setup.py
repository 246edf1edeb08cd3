from setuptools import setup, find_packages

setup(
    name="tenor",
    version="0.1.0",
    description="Record from the microphone until interrupted, then transcribe with Whisper",
    author="",
    python_requires=">=3.9",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "rich>=12.5.0",
        "click>=8.1.0",
        "pydantic>=2.0",
        "pyyaml>=6.0.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "tenor=tenor.main:main",
        ],
    },
)
