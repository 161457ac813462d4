#!/usr/bin/python3
#
# Copyright (C) 2024 testkdc contributors.
#
from setuptools import setup

REQUIRES = [
    'paramiko',
    'PyYAML']

TEST_REQUIRES = [
    'pytest']

with open('README.rst', 'r') as f:
    README = f.read()

setup_args = dict(
    name='testkdc',
    version='0.1.0',
    description='Provision and run an MIT Kerberos KDC for testing',
    long_description=README,
    author=u'testkdc contributors',
    packages=[
        'testkdc',
    ],
    install_requires=REQUIRES,
    extras_require={'test': TEST_REQUIRES},
    python_requires='>=3.8',
    entry_points={
        'console_scripts': [
            'testkdc = testkdc.cli:run',
        ],
    },
    license='GNU GPL v3.0',
    classifiers=(
        'Programming Language :: Python',
        'Programming Language :: Python :: 3',
    ),
)
if __name__ == '__main__':
    setup(**setup_args)
