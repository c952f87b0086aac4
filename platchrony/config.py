# Copyright Red Hat
#
# platchrony/config.py - platchrony persistent configuration
#
# This file is part of the platchrony project.
#
# SPDX-License-Identifier: GPL-2.0-only
"""The ``platchrony.config`` module defines classes, constants and
functions for reading and writing persistent (on-disk) configuration for
the platchrony library and tools.

Users of the module can load and write configuration data, and obtain
the values of configuration keys defined in the platchrony configuration
file. A missing configuration file is not an error: the built-in
defaults of ``PlatchronyConfig`` are used instead.
"""
from os.path import exists as path_exists

from configparser import ConfigParser, Error as ConfigParserError
import logging

from platchrony import *


class PlatchronyConfigError(PlatchronyError):
    """Base class for platchrony configuration errors."""

    pass


# Module logging configuration
_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error

#
# Constants for configuration sections and options: to add a new option,
# create a new _CFG_* constant giving the name of the option and add it
# to the _CFG_PATHS or _CFG_PLATFORM mapping with the PlatchronyConfig
# attribute that receives the value.
#
_CFG_SECT_PATHS = "paths"
_CFG_SECT_PLATFORM = "platform"
_CFG_CMDLINE = "cmdline"
_CFG_CHRONY_CONF = "chrony_conf"
_CFG_PRISTINE_CHRONY_CONF = "pristine_chrony_conf"
_CFG_CHRONYD_SYSCONFIG = "chronyd_sysconfig"
_CFG_PRISTINE_CHRONYD_SYSCONFIG = "pristine_chronyd_sysconfig"
_CFG_NETWORK_SYSCONFIG = "network_sysconfig"
_CFG_OUTPUT_DIR = "output_dir"
_CFG_PLATFORM_KEY = "platform_key"
_CFG_CLOCK_MODULE = "clock_module"

_CFG_PATHS = {
    _CFG_CMDLINE: "cmdline_path",
    _CFG_CHRONY_CONF: "chrony_conf",
    _CFG_PRISTINE_CHRONY_CONF: "pristine_chrony_conf",
    _CFG_CHRONYD_SYSCONFIG: "chronyd_sysconfig",
    _CFG_PRISTINE_CHRONYD_SYSCONFIG: "pristine_chronyd_sysconfig",
    _CFG_NETWORK_SYSCONFIG: "network_sysconfig",
    _CFG_OUTPUT_DIR: "output_dir",
}

_CFG_PLATFORM = {
    _CFG_PLATFORM_KEY: "platform_key",
    _CFG_CLOCK_MODULE: "clock_module",
}

_CFG_SECTIONS = {
    _CFG_SECT_PATHS: _CFG_PATHS,
    _CFG_SECT_PLATFORM: _CFG_PLATFORM,
}


def _read_platchrony_config(path=None):
    """Read platchrony persistent configuration values from the defined
    path and return them as a ``PlatchronyConfig`` object.

    :param path: the configuration file to read, or None to read the
                 default configuration file path.

    :rtype: PlatchronyConfig
    :raises: PlatchronyConfigError if the file cannot be parsed or
             contains unknown sections or options.
    """
    path = path or DEFAULT_PLATCHRONY_CONFIG_PATH
    pc = PlatchronyConfig()

    if not path_exists(path):
        _log_debug("no configuration at '%s': using defaults", path)
        return pc

    _log_debug("reading platchrony configuration from '%s'", path)
    cfg = ConfigParser()
    try:
        cfg.read(path)
    except ConfigParserError as e:
        raise PlatchronyConfigError(
            "Failed to parse configuration file '%s': %s" % (path, e)
        ) from e

    for section in cfg.sections():
        if section not in _CFG_SECTIONS:
            raise PlatchronyConfigError(
                "Unknown section '%s' in %s" % (section, path)
            )
        options = _CFG_SECTIONS[section]
        for option in cfg.options(section):
            if option not in options:
                raise PlatchronyConfigError(
                    "Unknown option '%s.%s' in %s" % (section, option, path)
                )
            value = cfg.get(section, option).strip()
            if not value:
                raise PlatchronyConfigError(
                    "Empty value for '%s.%s' in %s" % (section, option, path)
                )
            _log_debug("Found %s.%s", section, option)
            setattr(pc, options[option], value)

    _log_debug("read configuration: %s", repr(pc))
    return pc


def load_platchrony_config(path=None):
    """Load platchrony persistent configuration values from the defined
    path and make them the active configuration.

    :param path: the configuration file to read, or None to read the
                 default configuration file path

    :rtype: PlatchronyConfig
    """
    pc = _read_platchrony_config(path=path)
    set_platchrony_config(pc)
    return pc


def write_platchrony_config(config=None, path=None):
    """Write platchrony configuration to disk.

    The file is written in the INI notation given by
    ``str(PlatchronyConfig)`` and replaces any existing file atomically.

    :param config: the configuration values to write, or None to
                   write the current configuration
    :param path: the configuration file to write, or None to write
                 the default configuration file path

    :rtype: None
    """
    path = path or DEFAULT_PLATCHRONY_CONFIG_PATH
    config = config or get_platchrony_config()
    _log_debug("writing platchrony configuration to '%s'", path)
    write_file_atomic(path, str(config))


__all__ = [
    "PlatchronyConfigError",
    # Configuration file handling
    "load_platchrony_config",
    "write_platchrony_config",
]

# vim: set et ts=4 sw=4 :
