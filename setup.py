#!/usr/bin/env python3
# -*- coding: utf-8 -*-

from setuptools import setup, find_packages
from pathlib import Path

setup(
    name='epub-assembler',
    version='1.0.0',
    package_dir={'': 'src'},
    packages=find_packages(where='src'),
    install_requires=[
        'beautifulsoup4>=4.13.4',
        'pyyaml>=6.0.2',
        'rich>=14.0.0',
    ],
    extras_require={
        'test': [
            'pytest>=8.0',
        ],
    },
    entry_points={
        'console_scripts': [
            'epub-assemble=epub_assembler.make_epub:main',
        ],
    },
    author='Emasoft',
    author_email='713559+Emasoft@users.noreply.github.com',
    description='epub-assembler: build valid EPUB 2.0.1 and 3.0.1 packages from XHTML pages and resources',
    long_description=open('README.md').read() if Path('README.md').exists() else '',
    long_description_content_type='text/markdown',
    classifiers=[
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
        'Programming Language :: Python :: 3.12',
        'License :: OSI Approved :: Apache Software License',
        'Operating System :: OS Independent',
        'Development Status :: 4 - Beta',
        'Intended Audience :: Developers',
        'Topic :: Text Processing :: Markup :: XML',
        'Topic :: Software Development :: Libraries :: Python Modules',
    ],
    python_requires='>=3.10',
)
