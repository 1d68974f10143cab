from setuptools import setup, find_packages

setup(
    name="magnetizing-fpg",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "numpy",
        "pandas",
        "shapely>=2.0",
        "pydantic>=2.0",
        "networkx"
    ],
    extras_require={
        "test": [
            "pytest"
        ]
    }
)
