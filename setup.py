from setuptools import setup, find_packages

setup(
    name="exprtree",
    version="0.1.0",
    description="exprtree v0.1 — expression parsing and evaluation over arbitrary operand types",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    author="exprtree Project",
    python_requires=">=3.9",
    packages=find_packages(),
    extras_require={
        "test": ["pytest"],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "Topic :: Scientific/Engineering :: Mathematics",
        "Topic :: Software Development :: Interpreters",
    ],
)
