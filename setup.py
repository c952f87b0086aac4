#!/usr/bin/env python
from setuptools import setup

from platchrony import __version__ as platchrony_version

setup(
    name='platchrony',
    version=platchrony_version,
    description=("""Platform specific chronyd configuration generator."""),
    author='Red Hat',
    license="GPLv2",
    test_suite="tests",
    scripts=['bin/platchrony'],
    packages=['platchrony'],
    data_files=[
        ('lib/systemd/system', ['systemd/platchrony.service']),
        ('lib/systemd/system/chronyd.service.d',
         ['systemd/platchrony.conf']),
    ],
    extras_require={
        'test': ['pytest'],
    },
)


# vim: set et ts=4 sw=4 :
