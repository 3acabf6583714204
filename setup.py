# setup.py
from setuptools import setup, find_namespace_packages

setup(
    name="keyhunt",
    version="0.1.0",
    description="Find and remove unused translation keys in JSON/YAML locale files",
    author="Enrique Paredes",
    author_email="eparedesbalen@gmail.com",
    package_dir={"": "src"},
    packages=find_namespace_packages(where="src", include=["keyhunt*"]),
    python_requires=">=3.9",
    install_requires=[
        "ruamel.yaml>=0.17",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        'console_scripts': [
            'keyhunt=keyhunt.main:main',
        ],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "Operating System :: OS Independent",
    ],
)
