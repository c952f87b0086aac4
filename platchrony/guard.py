# Copyright Red Hat
#
# platchrony/guard.py - Detection of locally modified configuration
#
# This file is part of the platchrony project.
#
# SPDX-License-Identifier: GPL-2.0-only
"""The ``platchrony.guard`` module decides whether the administrator has
customised the chronyd configuration. If either the installed
``chrony.conf`` or the chronyd options file differs from the copy
shipped in ``/usr/etc`` no configuration is generated, so that local
changes are never overridden.
"""
from filecmp import cmp as file_cmp, clear_cache
import logging

from platchrony import PLATCHRONY_DEBUG_GUARD

# Module logging configuration
_log = logging.getLogger(__name__)
_log.set_debug_mask(PLATCHRONY_DEBUG_GUARD)

_log_debug = _log.debug
_log_debug_guard = _log.debug_masked
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error


def file_unmodified(path, pristine):
    """Test whether ``path`` is byte-for-byte identical to ``pristine``.

    A file that cannot be compared (either copy missing or unreadable)
    counts as modified.

    :param path: the installed file.
    :param pristine: the shipped reference copy of ``path``.
    :returns: ``True`` if the files are identical or ``False``
              otherwise.
    :rtype: bool
    """
    # filecmp caches results by stat signature
    clear_cache()
    try:
        same = file_cmp(path, pristine, shallow=False)
    except OSError as e:
        _log_error("Cannot compare %s with %s: %s", path, pristine, e)
        return False
    _log_debug_guard("%s %s %s", path, "matches" if same else "differs from", pristine)
    if not same:
        _log_info("%s is modified; not changing the default", path)
    return same


def check_unmodified(config):
    """Check the chronyd configuration and options files in ``config``
    against their shipped copies.

    :param config: the ``PlatchronyConfig`` naming the files to check.
    :returns: ``True`` if it is safe to generate a platform
              configuration, or ``False`` if local changes were found.
    :rtype: bool
    """
    pairs = [
        (config.chrony_conf, config.pristine_chrony_conf),
        (config.chronyd_sysconfig, config.pristine_chronyd_sysconfig),
    ]
    for (path, pristine) in pairs:
        if not file_unmodified(path, pristine):
            return False
    return True


__all__ = [
    "file_unmodified",
    "check_unmodified",
]

# vim: set et ts=4 sw=4 :
