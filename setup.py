from pathlib import Path

from setuptools import find_packages, setup

setup(
    name="bbox_annotation",
    version=Path("./bbox_annotation/VERSION").read_text().strip(),
    packages=find_packages(include=["bbox_annotation", "bbox_annotation.*"]),
    package_data={"bbox_annotation": ["VERSION"]},
    python_requires=">=3.8",
    install_requires=[
        "numpy",
        "opencv-python-headless",
        "easydict",
    ],
    extras_require={
        "test": ["pytest"],
    },
)
