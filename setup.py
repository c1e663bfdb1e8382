# setup.py
from setuptools import setup, find_packages

setup(
    name="ballcapture",
    version="0.1.0",
    author="Your Name",
    description="Cross-entropy direct policy search for a simulated soccer ball capture task.",
    packages=find_packages(include=["ballcapture", "ballcapture.*"]),
    install_requires=[
        "numpy>=1.24",
        "tqdm",
        "mlflow",
    ],
    extras_require={
        "test": ["pytest"],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
    python_requires='>=3.9',
)
