# Copyright Red Hat
#
# platchrony/chronyconf.py - chronyd configuration generation
#
# This file is part of the platchrony project.
#
# SPDX-License-Identifier: GPL-2.0-only
"""The ``platchrony.chronyconf`` module derives a platform specific
chronyd configuration from the distribution default ``chrony.conf``.

The default time sources and clock stepping policy are disabled by
prefixing the directives that set them with a comment character. The
lines are kept in place rather than removed so that a platform profile
may enable any of them again. A directive allowing chronyd to step the
clock on any correction is appended, followed by the time sources
contributed by the platform profile.

The transformation itself is a pure function of the input lines: file
access is confined to ``read_chrony_conf()`` and ``write_chrony_conf()``.
"""
import logging
import re

from platchrony import *

# Module logging configuration
_log = logging.getLogger(__name__)
_log.set_debug_mask(PLATCHRONY_DEBUG_CONF)

_log_debug = _log.debug
_log_debug_conf = _log.debug_masked
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error

#: chrony.conf comment character
COMMENT_CHAR = "#"

#: Directives disabled in the generated configuration: clock stepping,
#: the default NTP pool and the leap second timezone.
DISABLED_DIRECTIVES = ("makestep", "pool", "leapsectz")

#: First line of every generated configuration
GENERATED_HEADER = "# Generated by platchrony - do not edit directly"

#: Comment preceding the clock stepping directive
STEP_COMMENT = "# Step the system clock on any correction, at any time."

#: Clock stepping directive: a threshold of 1.0 seconds with no limit
#: on the number of updates that may step the clock.
STEP_DIRECTIVE = "makestep 1.0 -1"


def _directive_regex(directives):
    return re.compile(r"^(%s)(\s|$)" % "|".join(re.escape(d) for d in directives))


def disable_directives(lines, directives=DISABLED_DIRECTIVES):
    """Comment out configuration lines that begin with any of
    ``directives``.

    All other lines are returned unchanged and in their original
    order. Lines that are already comments are never modified.

    :param lines: a sequence of chrony.conf lines.
    :param directives: the directive names to disable.
    :returns: a new list of lines.
    :rtype: list
    """
    if not directives:
        return list(lines)
    match = _directive_regex(directives).match
    return [COMMENT_CHAR + line if match(line) else line for line in lines]


def transform_lines(lines, directives=DISABLED_DIRECTIVES):
    """Transform the lines of a default chrony.conf into the base of a
    generated configuration.

    The result begins with the generated-by header, continues with
    ``lines`` with ``directives`` disabled, and ends with a blank line
    separated block enabling unconditional clock stepping.

    :param lines: a sequence of chrony.conf lines.
    :param directives: the directive names to disable.
    :returns: a new list of lines.
    :rtype: list
    """
    out = [GENERATED_HEADER]
    out.extend(disable_directives(lines, directives))
    out.extend(["", STEP_COMMENT, STEP_DIRECTIVE])
    return out


class ChronyConf(object):
    """ChronyConf()

    A generated chronyd configuration. A ``ChronyConf`` is built from
    the lines of the default ``chrony.conf`` and accumulates the changes
    made by a platform profile: directives re-enabled and blocks of
    directives appended. The resulting configuration text is available
    from ``lines`` and ``str()``.
    """

    #: The lines of the default configuration
    base_lines = None

    #: The directives disabled by this configuration
    disabled = None

    #: Appended blocks, each a list of lines
    blocks = None

    def __init__(self, base_lines, directives=DISABLED_DIRECTIVES):
        """Initialise a new ``ChronyConf`` from the lines of a default
        chrony.conf.

        :param base_lines: a sequence of chrony.conf lines.
        :param directives: the directives to disable.
        :returns: a new ``ChronyConf`` object.
        :rtype: ChronyConf
        """
        self.base_lines = list(base_lines)
        self.disabled = list(directives)
        self.blocks = []

    def __str__(self):
        return "\n".join(self.lines) + "\n"

    def __repr__(self):
        return "ChronyConf(disabled=%s, blocks=%d)" % (self.disabled, len(self.blocks))

    def enable_directive(self, directive):
        """Enable ``directive`` again.

        Only lines that were disabled by this ``ChronyConf`` are
        affected: lines that were comments in the default configuration
        stay commented.

        :param directive: a directive name in ``disabled``.
        :raises: ValueError if ``directive`` is not disabled.
        """
        if directive not in self.disabled:
            raise ValueError("Directive '%s' is not disabled" % directive)
        _log_debug_conf("enabling directive '%s'", directive)
        self.disabled.remove(directive)

    def append_block(self, directives, comment=None):
        """Append a block of directives to the configuration.

        The block is separated from the preceding text by a blank line
        and may be introduced by a comment.

        :param directives: a list of directive lines.
        :param comment: an optional comment line, without the leading
                        comment character.
        """
        block = [""]
        if comment:
            block.append("%s %s" % (COMMENT_CHAR, comment))
        block.extend(directives)
        _log_debug_conf("appending block: %s", directives)
        self.blocks.append(block)

    @property
    def lines(self):
        """The lines of the generated configuration."""
        lines = transform_lines(self.base_lines, self.disabled)
        for block in self.blocks:
            lines.extend(block)
        return lines


def read_chrony_conf(path):
    """Read the default chrony.conf at ``path`` and return a new
    ``ChronyConf`` based on it.

    :param path: the path to the default chrony.conf.
    :rtype: ChronyConf
    """
    _log_debug("reading chronyd configuration from '%s'", path)
    return ChronyConf(read_lines(path))


def write_chrony_conf(conf, path):
    """Write the generated configuration ``conf`` to ``path``, replacing
    any previous content.

    :param conf: the ``ChronyConf`` to write.
    :param path: the destination path.
    :rtype: None
    """
    _log_debug("writing chronyd configuration to '%s'", path)
    write_file_atomic(path, str(conf))


__all__ = [
    "DISABLED_DIRECTIVES",
    "GENERATED_HEADER",
    "STEP_DIRECTIVE",
    "disable_directives",
    "transform_lines",
    "ChronyConf",
    "read_chrony_conf",
    "write_chrony_conf",
]

# vim: set et ts=4 sw=4 :
