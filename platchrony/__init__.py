# Copyright Red Hat
#
# platchrony/__init__.py - platchrony package initialisation
#
# This file is part of the platchrony project.
#
# SPDX-License-Identifier: GPL-2.0-only
"""This module provides classes and functions for generating a chronyd
configuration tuned to the cloud or virtualization platform that the
system was booted on.

The ``platchrony`` package contains global definitions, logging
infrastructure for the package and the ``PlatchronyConfig`` class
holding the paths and names used by the rest of the package.

Individual sub-modules provide interfaces to the components of
platchrony: boot parameter parsing, detection of local modifications
to the shipped configuration, platform time source profiles, chronyd
configuration generation, chronyd options and network configuration
handling, and the ``platchrony`` command line tool.

See the sub-module documentation for specific information on the
classes and interfaces provided.
"""
from ._platchrony import *
from ._platchrony import __all__

__version__ = "1.0.0"
# vim: set et ts=4 sw=4 :
