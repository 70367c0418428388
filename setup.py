#!/usr/bin/env python
from setuptools import setup, find_packages

with open("README.md", "r", encoding='utf-8') as fh:
    long_description = fh.read()

setup(
    name="ecsroll",
    version="0.1.0",
    description="Roll a new task definition out to an AWS ECS service and wait for it to stabilize",
    long_description=long_description,
    long_description_content_type="text/markdown",
    keywords=['aws', 'ecs', 'docker', 'devops', 'deployment'],
    classifiers=[
       "Programming Language :: Python :: 3"
    ],
    packages=find_packages(),
    include_package_data=True,
    package_data={'ecsroll': ["py.typed", "config/test/*.json", "config/test/*.yml", "config/test/*.env"]},
    python_requires=">=3.8",
    install_requires=[
        "boto3 >= 1.17",
        "cement>=3.0.0",
        "click >= 6.7",
        "colorlog",
        "PyYAML >= 5.1",
        "typing_extensions",
    ],
    extras_require={
        'test': [
            "mock",
            "pytest",
            "testfixtures",
        ],
    },
    entry_points={'console_scripts': [
        'ecsroll = ecsroll.main:main',
    ]}
)
