"""Setup script for redismetrics."""

from setuptools import find_packages, setup

setup(
    name="redismetrics",
    version="0.1.0",
    description="A scheduled reporter that exports in-process metrics to Redis as flat keys",
    author="redismetrics Team",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.9",
    install_requires=[
        "simpy>=4.0",
        "numpy>=1.24",
        "pyyaml>=6.0",
        "pydantic>=2.0",
        "click>=8.1",
        "redis>=4.5",
        "tzdata",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "redismetrics=redismetrics.cli:cli",
        ],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Intended Audience :: System Administrators",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Topic :: System :: Monitoring",
    ],
)
