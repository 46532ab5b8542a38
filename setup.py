#!/usr/bin/env python3
# pylint: disable=invalid-name

import sys
from setuptools import setup

# We require Python v3.8 or newer
if sys.version_info[:2] < (3, 8): raise RuntimeError("This requires Python v3.8 or newer")

setup(name='pymrc',
      version='0.1',
      description='Python MRC image file reading and writing',
      long_description=open('README.md').read(),
      long_description_content_type='text/markdown',
      packages=['pymrc', 'pymrc.general', 'pymrc.io'],
      python_requires='>=3.8',
      install_requires=['numpy>=1.17'],
      extras_require={
          'test': ['pytest>=6.0'],
      },
     )
