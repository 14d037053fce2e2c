from os import path

from setuptools import setup

this_dir = path.abspath(path.dirname(__file__))
with open(path.join(this_dir, "README.md")) as f:
    long_description = f.read()

setup(
    name="EasyRepo",
    description="EasyRepo - generic repository and unit of work over SQLAlchemy",
    long_description=long_description,
    long_description_content_type="text/markdown",
    version="0.1",
    license="MIT",
    packages=["easyrepo", "easyrepo.test", "easyrepo.core"],
    package_data={
        "easyrepo": ["py.typed"],
        "easyrepo.core": ["py.typed"],
        "easyrepo.test": ["py.typed"],
    },
    keywords=["easyrepo", "repository", "unit-of-work", "sqlalchemy"],
    python_requires=">=3.9",
    install_requires=[
        "sqlalchemy>=2.0",
        "uvicorn",
    ],
    extras_require={
        "test": ["pytest"],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Topic :: Database",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3.9",
    ],
)
