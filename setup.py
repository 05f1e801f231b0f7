from setuptools import setup

# Project metadata lives in pyproject.toml
setup()
