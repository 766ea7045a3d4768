from setuptools import setup, find_packages


with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="linksim",
    version="0.1.0",
    description="A discrete event simulator of a single bottleneck link with a drop-tail buffer.",
    long_description=long_description,
    long_description_content_type="text/markdown",
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
    packages=find_packages(exclude=("tests", "tests.*")),
    python_requires=">=3.8",
    install_requires=["PyYAML", "schema", "pandas"],
    extras_require={"test": ["pytest", "pytest-mock"]},
    tests_require=["pytest", "pytest-mock"],
    entry_points={"console_scripts": ["linksim=linksim.cli:main"]},
)
