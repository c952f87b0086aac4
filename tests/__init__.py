# Copyright Red Hat
#
# tests/__init__.py - platchrony test package initialisation
#
# This file is part of the platchrony project.
#
# SPDX-License-Identifier: GPL-2.0-only
from os.path import join, abspath, dirname
from os import makedirs
import logging
import shutil
import errno

from platchrony import PlatchronyConfig

log = logging.getLogger()
log.setLevel(logging.DEBUG)
formatter = logging.Formatter('%(asctime)s %(levelname)s %(name)s %(message)s')
file_handler = logging.FileHandler("test.log")
file_handler.setFormatter(formatter)
log.addHandler(file_handler)

# Root of the testing directory
TESTS_ROOT = abspath(dirname(__file__))

# Location of the test data files
DATA_PATH = join(TESTS_ROOT, "data")

# Location of the temporary sandbox for test data
SANDBOX_PATH = join(TESTS_ROOT, "sandbox")

# Test sandbox functions

def rm_sandbox():
    """Remove the test sandbox at SANDBOX_PATH.
    """
    try:
        shutil.rmtree(SANDBOX_PATH)
    except OSError as e:
        if e.errno != errno.ENOENT:
            raise


def mk_sandbox():
    """Create a new test sandbox at SANDBOX_PATH.
    """
    makedirs(SANDBOX_PATH)


def reset_sandbox():
    """Reset the test sandbox at SANDBOX_PATH by removing it and
        re-creating the directory.
    """
    rm_sandbox()
    mk_sandbox()


def data_path(name):
    """Return the path to the test data file ``name``.
    """
    return join(DATA_PATH, name)


def read_file(path):
    """Return the content of the file at ``path``.
    """
    with open(path, "r") as f:
        return f.read()


def write_file(path, data):
    """Write ``data`` to ``path``, creating parent directories.
    """
    makedirs(dirname(path), exist_ok=True)
    with open(path, "w") as f:
        f.write(data)


def sandbox_config():
    """Return a ``PlatchronyConfig`` with every path inside the sandbox.
    """
    return PlatchronyConfig(
        cmdline_path=join(SANDBOX_PATH, "proc/cmdline"),
        chrony_conf=join(SANDBOX_PATH, "etc/chrony.conf"),
        pristine_chrony_conf=join(SANDBOX_PATH, "usr/etc/chrony.conf"),
        chronyd_sysconfig=join(SANDBOX_PATH, "etc/sysconfig/chronyd"),
        pristine_chronyd_sysconfig=join(SANDBOX_PATH, "usr/etc/sysconfig/chronyd"),
        network_sysconfig=join(SANDBOX_PATH, "etc/sysconfig/network"),
        output_dir=join(SANDBOX_PATH, "run/platchrony"),
    )


def mk_system(platform="aws", cmdline=None):
    """Populate the sandbox with a freshly installed system booted on
        ``platform`` and return the matching ``PlatchronyConfig``.

        If ``cmdline`` is given it is used as the kernel command line
        instead of the default test command line.
    """
    reset_sandbox()
    config = sandbox_config()
    chrony_conf = read_file(data_path("chrony.conf"))
    chronyd = read_file(data_path("chronyd"))
    for path in (config.chrony_conf, config.pristine_chrony_conf):
        write_file(path, chrony_conf)
    for path in (config.chronyd_sysconfig, config.pristine_chronyd_sysconfig):
        write_file(path, chronyd)
    write_file(config.network_sysconfig, read_file(data_path("network")))
    if cmdline is None:
        cmdline = read_file(data_path("cmdline"))
        cmdline = cmdline.replace("ignition.platform.id=aws",
                                  "ignition.platform.id=%s" % platform)
    write_file(config.cmdline_path, cmdline)
    return config


__all__ = [
    'TESTS_ROOT', 'DATA_PATH', 'SANDBOX_PATH',
    'rm_sandbox', 'mk_sandbox', 'reset_sandbox',
    'data_path', 'read_file', 'write_file',
    'sandbox_config', 'mk_system',
]

# vim: set et ts=4 sw=4 :
