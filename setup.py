#!/usr/bin/env python3

from setuptools import setup, find_packages

from marinade.version import VERSION_STRING

setup(
    name="marinade",
    version=VERSION_STRING,
    packages=find_packages(
        include=['marinade', 'marinade.*'],
    ),
    zip_safe=True,

    install_requires=['Jinja2', 'PyYAML'],
    python_requires='>=3.8',

    entry_points={
        'console_scripts': [
            'marinade-render = marinade.cli.render:main',
        ],
        'gui_scripts': [
        ]
    },
    test_suite='tests.unit',

    description='Custom template engines for static-site generation',
)
