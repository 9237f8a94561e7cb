#
# Copyright © 2020-2023 VMware, Inc.
# SPDX-License-Identifier: Apache-2.0 OR GPL-2.0-only
#

import os
from version import get_builder_version
from setuptools import setup, find_packages

here = os.path.abspath(os.path.dirname(__file__))

with open(os.path.join(here, "requirements.txt")) as requirements_txt:
    REQUIRES = requirements_txt.read().splitlines()

setup(
    name='ove-iso-builder',
    description='Builds the agent-based installer OVE ISO from an RHCOS live ISO',
    packages=find_packages(include=['ove_iso_builder']),
    install_requires=REQUIRES,
    extras_require={
        'test': ['pytest'],
    },
    python_requires='>=3.8',
    include_package_data=True,
    zip_safe=False,
    entry_points={
        'console_scripts': [
            'ove-iso-builder = ove_iso_builder.isoBuilder:main',
        ]
    },
    version='1.0+' + get_builder_version(),
)
