# Copyright Red Hat
#
# platchrony/sysconfig.py - chronyd options and network configuration
#
# This file is part of the platchrony project.
#
# SPDX-License-Identifier: GPL-2.0-only
"""The ``platchrony.sysconfig`` module handles the shell style variable
files in ``/etc/sysconfig`` that platchrony reads and writes.

The chronyd options file sets a single ``OPTIONS`` variable holding the
daemon command line options. platchrony writes a new options file that
adds ``-f <generated configuration>`` to the existing options: the
chronyd unit reads it as an ``EnvironmentFile`` so that the generated
configuration is used in place of ``/etc/chrony.conf``.

The network configuration file may set ``PEERNTP=no`` to stop NTP
servers advertised by DHCP from being added to chronyd.
"""
from os.path import exists as path_exists
import logging

from platchrony import *
from platchrony.platform import PLATFORM_QEMU

# Module logging configuration
_log = logging.getLogger(__name__)
_log.set_debug_mask(PLATCHRONY_DEBUG_SYSCONFIG)

_log_debug = _log.debug
_log_debug_sysconfig = _log.debug_masked
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error

#: The chronyd options variable
OPTIONS_VAR = "OPTIONS"

#: chronyd option selecting the configuration file
CONF_FILE_OPTION = "-f"

#: The network variable controlling DHCP NTP servers
PEERNTP_VAR = "PEERNTP"

#: Value of ``PEERNTP`` disabling DHCP NTP servers
PEERNTP_DISABLED = "no"


def _parse_variables(lines, warn_names=()):
    """Parse shell style variable assignments from ``lines``.

    Blank lines, comments and lines that are not assignments are
    skipped. Later assignments replace earlier ones.

    :param lines: a sequence of text lines.
    :param warn_names: variable names for which a line that cannot be
                       parsed is logged as a warning.
    :returns: a dictionary mapping variable names to values.
    :rtype: dict
    """
    variables = {}
    for line in lines:
        if blank_or_comment(line):
            continue
        try:
            (name, value) = parse_name_value(line)
        except ValueError:
            if line.split("=", 1)[0].strip() in warn_names:
                _log_warn("Ignoring malformed assignment '%s'", line)
            else:
                _log_debug_sysconfig("skipping line '%s'", line)
            continue
        variables[name] = value or ""
    return variables


def parse_options(lines):
    """Return the value of the ``OPTIONS`` variable in ``lines``.

    :param lines: the lines of a chronyd options file.
    :returns: the options string, or the empty string if ``OPTIONS``
              is not set.
    :rtype: str
    """
    return _parse_variables(lines, (OPTIONS_VAR,)).get(OPTIONS_VAR, "")


def read_options(path):
    """Read the chronyd options from the file at ``path``.

    :param path: the chronyd options file.
    :rtype: str
    """
    _log_debug("reading chronyd options from '%s'", path)
    return parse_options(read_lines(path))


def merge_options(options, conf_path):
    """Return ``options`` with a flag selecting the configuration file
    ``conf_path`` appended.

    Leading and trailing white space is stripped from ``options``
    before the flag is added; empty options give the flag alone.

    :param options: the existing chronyd options.
    :param conf_path: the generated configuration path.
    :rtype: str
    """
    flag = "%s %s" % (CONF_FILE_OPTION, conf_path)
    options = options.strip()
    return "%s %s" % (options, flag) if options else flag


def format_options(options):
    """Format ``options`` as an ``OPTIONS`` variable assignment.

    The value is double quoted: ``\\``, ``"``, ``$`` and backticks are
    escaped with a backslash so that ``parse_options()`` and the
    systemd ``EnvironmentFile`` parser read back ``options`` unchanged.

    :param options: the chronyd options string.
    :rtype: str
    """
    value = options.replace("\\", "\\\\")
    for c in '"$`':
        value = value.replace(c, "\\" + c)
    return '%s="%s"\n' % (OPTIONS_VAR, value)


def write_options(options, path):
    """Write a chronyd options file containing only ``options`` to
    ``path``, replacing any previous content.

    :param options: the chronyd options string.
    :param path: the destination path.
    :rtype: None
    """
    _log_debug("writing chronyd options to '%s'", path)
    write_file_atomic(path, format_options(options))


def peer_ntp_defined(path):
    """Test whether the network configuration at ``path`` sets
    ``PEERNTP``.

    :param path: the network configuration file.
    :returns: ``True`` if ``PEERNTP`` is set, or ``False`` if it is
              not set or the file does not exist.
    :rtype: bool
    """
    if not path_exists(path):
        return False
    return PEERNTP_VAR in _parse_variables(read_lines(path))


def disable_peer_ntp(path, platform):
    """Prefer the platform time source over NTP servers provided by
    DHCP.

    Append ``PEERNTP=no`` to the network configuration at ``path``
    unless it already sets ``PEERNTP``. On ``qemu`` the setting is
    left unset: DHCP NTP servers have always been used there alongside
    the KVM clock.

    :param path: the network configuration file.
    :param platform: the platform identifier.
    :returns: ``True`` if the file was changed or ``False`` otherwise.
    :rtype: bool
    """
    if platform == PLATFORM_QEMU:
        _log_debug_sysconfig("not disabling DHCP NTP servers on %s", platform)
        return False
    if peer_ntp_defined(path):
        _log_debug_sysconfig("%s already set in %s", PEERNTP_VAR, path)
        return False

    prefix = ""
    if path_exists(path):
        with open(path, "r", encoding=TEXT_ENCODING, errors=TEXT_ERRORS) as f:
            data = f.read()
        if data and not data.endswith("\n"):
            prefix = "\n"

    _log_info("Disabling DHCP NTP servers in %s", path)
    with open(path, "a", encoding=TEXT_ENCODING, errors=TEXT_ERRORS) as f:
        f.write("%s%s=%s\n" % (prefix, PEERNTP_VAR, PEERNTP_DISABLED))
    return True


__all__ = [
    "parse_options",
    "read_options",
    "merge_options",
    "format_options",
    "write_options",
    "peer_ntp_defined",
    "disable_peer_ntp",
]

# vim: set et ts=4 sw=4 :
