from setuptools import setup, find_packages

setup(
    name="harmonic_pattern_scanner",
    version="1.0.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    py_modules=["main"],
    include_package_data=True,
    description="Harmonic (Gartley, Butterfly, Bat, Crab) pattern detection engine",
    author="Vijji",
    author_email="vijji@example.com",
    python_requires=">=3.8",
    install_requires=[
        "numpy>=1.19.0",
        "pandas>=1.1.0",
        "scipy>=1.5.0",
    ],
    extras_require={
        "test": [
            "pytest>=6.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "harmonic-scan=main:main",
        ],
    },
)
