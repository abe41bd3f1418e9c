#!/usr/bin/env python
# -*- coding: utf-8 -*-
from setuptools import setup

with open('README.md', encoding='utf8') as readme_file:
    readme = readme_file.read()


setup(
    name='insights-events',
    version='1.0.0',
    description="Buffered, gzip-batched event delivery for the Insights insert API.",
    long_description=readme,
    long_description_content_type="text/markdown",
    packages=[
        'insights_events',
        'insights_events.config',
        'insights_events.transport',
    ],
    package_dir={'insights_events': 'insights_events'},
    entry_points={
        'console_scripts': [
            'insights-events=insights_events.cli:cli'
        ]
    },
    include_package_data=True,
    install_requires=[
        'Click>=8.0',
        'httpx>=0.26',
    ],
    extras_require={
        'test': [
            'pytest>=7',
        ],
    },
    python_requires=">=3.9",
    license="MIT license",
    zip_safe=False,
    keywords='insights events telemetry',
    classifiers=[
        'Development Status :: 4 - Beta',
        'Intended Audience :: Developers',
        'License :: OSI Approved :: MIT License',
        'Natural Language :: English',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.9',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
        'Programming Language :: Python :: 3.12',
    ]
)
