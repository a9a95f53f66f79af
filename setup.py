from setuptools import setup

info = {}

with open("ccafk/info.py") as fp:
    exec(fp.read(), info)

version = ""
with open("ccafk/VERSION", "r") as f:
    version = f.read().strip()

with open("README.md", "r") as f:
    long_description = f.read()

with open("requirements.txt") as f:
    requirements = [line.strip() for line in f if line.strip()]

setup(
    name=info["__package_name__"],
    version=version,
    description=info["__description__"],
    long_description=long_description,
    long_description_content_type="text/markdown",
    license=info["__license__"],
    author=info["__author__"],
    author_email=info["__author_email__"],
    url=info["__author_url__"],
    python_requires=">=3.10",
    install_requires=requirements,
    extras_require={
        "test": [
            "pytest>=7.4",
            "pytest-asyncio>=0.23",
        ],
    },
    packages=[
        "ccafk",
        "ccafk.endpoints",
        "ccafk.libraries",
        "ccafk.models",
        "ccafk.schemas",
        "ccafk.services",
        "ccafk.utils",
    ],
    classifiers=[
        "Programming Language :: Python :: 3",
        "Operating System :: POSIX :: Linux",
        "License :: OSI Approved :: GNU General Public License v3 (GPLv3)",
        "Topic :: Games/Entertainment",
    ],
    entry_points={
        "console_scripts": [
            "cookie-clicker-afk = ccafk:main",
        ],
    },
    include_package_data=True,
    package_data={
        "ccafk": [
            "migrations/**/*",
            "VERSION",
        ],
    },
)
