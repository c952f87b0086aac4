# Copyright Red Hat
#
# platchrony/system.py - platchrony system command integration
#
# This file is part of the platchrony project.
#
# SPDX-License-Identifier: Apache-2.0
"""The ``platchrony.system`` module contains functions and constants
needed to call the system tools that platchrony depends on: the kernel
module loader and the SELinux context tools.
"""
from subprocess import run, CalledProcessError
import logging

from platchrony import PlatchronyError

# Module logging configuration
_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error

#: The kernel module loader command
_MODPROBE = "modprobe"

#: The SELinux context change command
_CHCON = "chcon"

_CMD_ENV = {
    "LC_ALL": "C",
    "PATH": "/usr/sbin:/usr/bin:/sbin:/bin",
}


class LabelError(PlatchronyError):
    """platchrony exception indicating that a security label could not
    be copied between files.
    """

    pass


def load_kernel_module(module: str) -> bool:
    """Attempt to load the kernel module ``module``.

    :param module: The name of the module to load.
    :type module: ``str``
    :returns: ``True`` if the module is loaded or ``False`` if it is
              not available on this system.
    :rtype: ``bool``
    """
    modprobe_cmd_args = [_MODPROBE, module]
    try:
        run(modprobe_cmd_args, env=_CMD_ENV, capture_output=True, check=True)
    except FileNotFoundError:
        _log_debug("'%s' command not found", _MODPROBE)
        return False
    except CalledProcessError as err:
        stderr = err.stderr.decode("utf8", errors="replace").strip()
        _log_debug(
            "Error calling modprobe command: '%s': %s",
            " ".join(modprobe_cmd_args),
            stderr,
        )
        return False
    _log_debug("Loaded kernel module %s", module)
    return True


def copy_security_label(reference: str, path: str):
    """Set the SELinux label of ``path`` to the label of ``reference``.

    Systems without SELinux support have no ``chcon`` command: the
    label is left unset and a debug message is logged.

    :param reference: The file whose label is copied.
    :type reference: ``str``
    :param path: The file to relabel.
    :type path: ``str``
    :raises: LabelError if ``chcon`` fails.
    """
    chcon_cmd_args = [_CHCON, "--reference=%s" % reference, path]
    try:
        run(chcon_cmd_args, env=_CMD_ENV, capture_output=True, check=True)
    except FileNotFoundError:
        _log_debug("'%s' command not found: not relabelling %s", _CHCON, path)
        return
    except CalledProcessError as err:
        stderr = err.stderr.decode("utf8", errors="replace").strip()
        raise LabelError(
            "Cannot copy security label from %s to %s: %s" % (reference, path, stderr)
        ) from err
    _log_debug("Copied security label from %s to %s", reference, path)


__all__ = [
    "LabelError",
    "load_kernel_module",
    "copy_security_label",
]

# vim: set et ts=4 sw=4 :
