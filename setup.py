"""
Setup script for pipescaler
"""

from setuptools import setup, find_packages

with open("requirements.txt", "r", encoding="utf-8") as fh:
    requirements = [line.strip() for line in fh if line.strip() and not line.startswith("#")]

setup(
    name="pipescaler",
    version="0.1.0",
    author="pipescaler team",
    description="Control loop that scales a queue-driven HDInsight pipeline up and down",
    long_description="pipescaler watches an input queue, a relay App Service, an HDInsight cluster and its Livy endpoint, and starts, stops, creates or deletes resources so queued work is processed promptly while idle clusters are released.",
    long_description_content_type="text/plain",
    packages=find_packages(include=["pipescaler", "pipescaler.*"]),
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: System :: Clustering",
        "Topic :: System :: Monitoring",
    ],
    python_requires=">=3.11",
    install_requires=requirements,
    extras_require={
        "dev": [
            "pytest>=7.4.0",
            "pytest-asyncio>=0.21.0",
            "pytest-mock>=3.12.0",
        ]
    },
    entry_points={
        "console_scripts": [
            "pipescaler=pipescaler.main:main",
        ],
    },
)
