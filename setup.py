from setuptools import find_packages, setup

with open("README.md", encoding="utf-8") as fh:
    long_description = fh.read()

requirements = [
    "requests>=2.32.4",
    "PyYAML>=6.0.3",
    "python-dotenv>=1.0.0",
    "rich>=13.0.0",
    "psutil>=5.9.0",
]

setup(
    name="healthmon",
    version="0.1.0",
    author="Healthmon Authors",
    description="Host health monitor reporting CPU, memory, load and disk alerts",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(include=["healthmon", "healthmon.*"]),
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: System Administrators",
        "Topic :: System :: Monitoring",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Operating System :: POSIX :: Linux",
    ],
    python_requires=">=3.10",
    install_requires=requirements,
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "healthmon=healthmon.cli:main",
        ],
    },
    include_package_data=True,
)
