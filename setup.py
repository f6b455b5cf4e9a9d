from setuptools import setup, find_packages

setup(
    name="ldgen",
    version="1.0.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    # Section templates are loaded from the installed package
    package_data={
        "ldgen": ["templates/*/*.j2"],
    },
    entry_points={
        'console_scripts': [
            'ldgen=ldgen.cli:main',
        ],
    },
    install_requires=[
        "jinja2>=3.0",
        "pyelftools>=0.29",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    python_requires=">=3.8",
    author="ldgen",
    description="GNU ld linker script generator for ARM Cortex-M and MIPS32 microcontrollers",
)
