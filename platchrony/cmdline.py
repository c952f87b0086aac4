# Copyright Red Hat
#
# platchrony/cmdline.py - Kernel boot parameter parsing
#
# This file is part of the platchrony project.
#
# SPDX-License-Identifier: GPL-2.0-only
"""The ``platchrony.cmdline`` module parses the kernel command line into
an ordered set of boot parameters and provides lookup of individual
parameter values.

Boot parameters are whitespace separated ``key=value`` tokens. A key
may appear more than once: the last occurrence takes precedence, as it
does for the kernel and for systemd.
"""
import logging

from platchrony import PlatchronyError, PLATCHRONY_DEBUG_CMDLINE

# Module logging configuration
_log = logging.getLogger(__name__)
_log.set_debug_mask(PLATCHRONY_DEBUG_CMDLINE)

_log_debug = _log.debug
_log_debug_cmdline = _log.debug_masked
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error


class CmdlineError(PlatchronyError):
    """platchrony exception indicating that the boot parameters could
    not be read.
    """

    pass


class KernelCmdline(object):
    """KernelCmdline()

    An ordered set of kernel boot parameters. Each parameter is held
    as a ``(key, value)`` tuple in the order it appeared on the command
    line: parameters without a value (``quiet``, ``ro``) have a value of
    ``None``.
    """

    #: The original command line string
    cmdline = None

    #: Ordered list of ``(key, value)`` tuples
    params = None

    def __init__(self, cmdline):
        """Initialise a new ``KernelCmdline`` from the string
        ``cmdline``.

        :param cmdline: a kernel command line string.
        :returns: a new ``KernelCmdline`` object.
        :rtype: KernelCmdline
        """
        self.cmdline = cmdline
        self.params = []
        for token in cmdline.split():
            if "=" in token:
                (key, value) = token.split("=", 1)
            else:
                (key, value) = (token, None)
            self.params.append((key, value))
        _log_debug_cmdline("parsed %d boot parameters", len(self.params))

    def __str__(self):
        return " ".join(
            key if value is None else "%s=%s" % (key, value)
            for (key, value) in self.params
        )

    def __repr__(self):
        return 'KernelCmdline("%s")' % self.cmdline.strip()

    def __len__(self):
        return len(self.params)

    def __contains__(self, key):
        return any(k == key for (k, _) in self.params)

    def lookup(self, key):
        """Return the value of the boot parameter ``key``.

        If ``key`` appears more than once the value of the last
        occurrence is returned.

        :param key: the parameter name to look up.
        :returns: the parameter value, the empty string if the
                  parameter has no value, or ``None`` if ``key``
                  is not present.
        :rtype: str
        """
        found = None
        for (k, value) in self.params:
            if k == key:
                found = value if value is not None else ""
        _log_debug_cmdline("lookup %s -> %s", key, found)
        return found


def read_cmdline(path):
    """Read and parse the kernel command line at ``path``.

    :param path: the file containing the command line, normally
                 ``/proc/cmdline``.
    :returns: the parsed boot parameters.
    :rtype: KernelCmdline
    :raises: CmdlineError if the file cannot be read.
    """
    _log_debug("reading boot parameters from '%s'", path)
    try:
        with open(path, "r") as f:
            cmdline = f.read()
    except (OSError, UnicodeDecodeError) as e:
        raise CmdlineError(
            "Cannot read boot parameters from '%s': %s" % (path, e)
        ) from e
    return KernelCmdline(cmdline)


__all__ = [
    "CmdlineError",
    "KernelCmdline",
    "read_cmdline",
]

# vim: set et ts=4 sw=4 :
