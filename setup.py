#!/usr/bin/env python3
from setuptools import setup, find_packages

setup(
    name='feistel16',
    version='0.1.0',
    description='4-round Feistel network on 16-bit blocks with a 4-bit S-box',
    package_dir={'': 'src'},
    packages=find_packages('src'),
    package_data={'feistel16': ['log_config.json']},
    python_requires='>=3.9',
    install_requires=[
        'numpy',
        'click',
    ],
    extras_require={
        'test': ['pytest'],
    },
    entry_points={
        'console_scripts': [
            'feistel16 = feistel16.main:cli',
        ],
    },
)
