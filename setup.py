from setuptools import setup, find_packages

setup(
    name="webqa_forge",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    include_package_data=True,
    package_data={
        "webqa_forge.synthesis": ["templates/*/*.j2"],
        "webqa_forge.reporting": ["templates/*.j2"],
    },
    install_requires=[
        "pydantic>=2",
        "jinja2",
        "requests",
        "python-dotenv",
        "pyyaml",
    ],
    extras_require={
        "test": ["pytest"],
    },
    python_requires='>=3.10',
)
