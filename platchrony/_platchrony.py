# Copyright Red Hat
#
# platchrony/_platchrony.py - platchrony package initialisation
#
# This file is part of the platchrony project.
#
# SPDX-License-Identifier: GPL-2.0-only
"""This module provides the declarations, classes, and functions exposed
in the main ``platchrony`` module. Users of platchrony should not import
this module directly: it will be imported automatically with the top
level module.
"""
from os.path import dirname, isdir, join as path_join
from os import chmod, fdatasync, fdopen, makedirs, rename, unlink
from tempfile import mkstemp
import logging
import string

#: The location of the platchrony configuration directory.
DEFAULT_PLATCHRONY_DIR = "/etc/platchrony"

#: The default configuration file location
PLATCHRONY_CONFIG_FILE = "platchrony.conf"
DEFAULT_PLATCHRONY_CONFIG_PATH = path_join(
    DEFAULT_PLATCHRONY_DIR, PLATCHRONY_CONFIG_FILE
)

#: The source of the running kernel's boot parameters.
DEFAULT_CMDLINE_PATH = "/proc/cmdline"

#: The installed chronyd configuration file.
DEFAULT_CHRONY_CONF = "/etc/chrony.conf"
#: The as-shipped chronyd configuration file.
DEFAULT_PRISTINE_CHRONY_CONF = "/usr/etc/chrony.conf"

#: The installed chronyd options file.
DEFAULT_CHRONYD_SYSCONFIG = "/etc/sysconfig/chronyd"
#: The as-shipped chronyd options file.
DEFAULT_PRISTINE_CHRONYD_SYSCONFIG = "/usr/etc/sysconfig/chronyd"

#: The network configuration file holding ``PEERNTP``.
DEFAULT_NETWORK_SYSCONFIG = "/etc/sysconfig/network"

#: The directory receiving the generated files.
DEFAULT_OUTPUT_DIR = "/run/platchrony"

#: Name of the generated chronyd configuration in the output directory.
GENERATED_CONF_NAME = "chrony.conf"
#: Name of the generated chronyd options file in the output directory.
GENERATED_OPTIONS_NAME = "chronyd"

#: Boot parameter naming the platform.
DEFAULT_PLATFORM_KEY = "ignition.platform.id"

#: Kernel module providing the KVM PTP clock device.
DEFAULT_CLOCK_MODULE = "ptp_kvm"

#: Mode for generated files
GENERATED_FILE_MODE = 0o644

#: Encoding and error handler used for configuration text: bytes that
#: are not valid UTF-8 are carried through unchanged.
TEXT_ENCODING = "utf-8"
TEXT_ERRORS = "surrogateescape"

#: Exit status for success and for expected early exits.
EXIT_OK = 0
#: Exit status for fatal errors.
EXIT_FAILURE = 1

#
# Logging
#

PLATCHRONY_LOG_DEBUG = logging.DEBUG
PLATCHRONY_LOG_INFO = logging.INFO
PLATCHRONY_LOG_WARN = logging.WARNING
PLATCHRONY_LOG_ERROR = logging.ERROR

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error

# platchrony debugging levels
PLATCHRONY_DEBUG_CMDLINE = 1
PLATCHRONY_DEBUG_GUARD = 2
PLATCHRONY_DEBUG_CONF = 4
PLATCHRONY_DEBUG_SYSCONFIG = 8
PLATCHRONY_DEBUG_COMMAND = 16
PLATCHRONY_DEBUG_ALL = (
    PLATCHRONY_DEBUG_CMDLINE
    | PLATCHRONY_DEBUG_GUARD
    | PLATCHRONY_DEBUG_CONF
    | PLATCHRONY_DEBUG_SYSCONFIG
    | PLATCHRONY_DEBUG_COMMAND
)

#: Map of debug subsystem names accepted by ``--debug`` to mask bits.
PLATCHRONY_DEBUG_NAMES = {
    "cmdline": PLATCHRONY_DEBUG_CMDLINE,
    "guard": PLATCHRONY_DEBUG_GUARD,
    "conf": PLATCHRONY_DEBUG_CONF,
    "sysconfig": PLATCHRONY_DEBUG_SYSCONFIG,
    "command": PLATCHRONY_DEBUG_COMMAND,
    "all": PLATCHRONY_DEBUG_ALL,
}

__debug_mask = 0


class PlatchronyError(Exception):
    """Base class of all platchrony exceptions."""

    pass


class PlatchronyLogger(logging.Logger):
    """PlatchronyLogger()

    platchrony logging wrapper class: wrap the Logger.debug() method
    to allow filtering of submodule debug messages by log mask.

    This allows us to selectively control which messages are
    logged in the library without having to tamper with the
    Handler, Filter or Formatter configurations (which belong
    to the client application using the library).
    """

    mask_bits = 0

    def set_debug_mask(self, mask_bits):
        """Set the debug mask for this ``PlatchronyLogger``.

        This should normally be set to the ``PLATCHRONY_DEBUG_*`` value
        corresponding to the ``platchrony`` sub-module that this
        instance of ``PlatchronyLogger`` belongs to.

        :param mask_bits: The bits to set in this logger's mask.
        :rtype: None
        """
        if mask_bits < 0 or mask_bits > PLATCHRONY_DEBUG_ALL:
            raise ValueError(
                "Invalid PlatchronyLogger mask bits: 0x%x"
                % (mask_bits & ~PLATCHRONY_DEBUG_ALL)
            )

        self.mask_bits = mask_bits

    def debug_masked(self, msg, *args, **kwargs):
        """Log a debug message if it passes the current debug mask.

        :param msg: the message to be logged
        :rtype: None
        """
        if self.mask_bits & get_debug_mask():
            self.debug(msg, *args, **kwargs)


logging.setLoggerClass(PlatchronyLogger)


def get_debug_mask():
    """Return the current debug mask for the ``platchrony`` package.

    :returns: The current debug mask value
    :rtype: int
    """
    return __debug_mask


def set_debug_mask(mask):
    """Set the debug mask for the ``platchrony`` package.

    :param mask: the logical OR of the ``PLATCHRONY_DEBUG_*``
                 values to log.
    :rtype: None
    """
    global __debug_mask
    if mask < 0 or mask > PLATCHRONY_DEBUG_ALL:
        raise ValueError("Invalid platchrony debug mask: %d" % mask)
    __debug_mask = mask


def parse_debug_mask(names):
    """Convert a comma separated list of debug subsystem names into
    a debug mask value.

    :param names: a string such as ``"cmdline,conf"`` or ``"all"``.
    :returns: the corresponding mask
    :rtype: int
    :raises: ValueError if an unknown subsystem name is given.
    """
    mask = 0
    for name in names.split(","):
        name = name.strip()
        if not name:
            continue
        if name not in PLATCHRONY_DEBUG_NAMES:
            raise ValueError("Unknown debug subsystem: %s" % name)
        mask |= PLATCHRONY_DEBUG_NAMES[name]
    return mask


class PlatchronyConfig(object):
    """Class representing platchrony persistent configuration values."""

    # Initialise members from global defaults

    cmdline_path = DEFAULT_CMDLINE_PATH
    chrony_conf = DEFAULT_CHRONY_CONF
    pristine_chrony_conf = DEFAULT_PRISTINE_CHRONY_CONF
    chronyd_sysconfig = DEFAULT_CHRONYD_SYSCONFIG
    pristine_chronyd_sysconfig = DEFAULT_PRISTINE_CHRONYD_SYSCONFIG
    network_sysconfig = DEFAULT_NETWORK_SYSCONFIG
    output_dir = DEFAULT_OUTPUT_DIR

    platform_key = DEFAULT_PLATFORM_KEY
    clock_module = DEFAULT_CLOCK_MODULE

    def __str__(self):
        """Return a string representation of this ``PlatchronyConfig``
        in platchrony.conf (INI) notation.
        """
        cstr = ""
        cstr += "[paths]\n"
        cstr += "cmdline = %s\n" % self.cmdline_path
        cstr += "chrony_conf = %s\n" % self.chrony_conf
        cstr += "pristine_chrony_conf = %s\n" % self.pristine_chrony_conf
        cstr += "chronyd_sysconfig = %s\n" % self.chronyd_sysconfig
        cstr += "pristine_chronyd_sysconfig = %s\n" % (
            self.pristine_chronyd_sysconfig
        )
        cstr += "network_sysconfig = %s\n" % self.network_sysconfig
        cstr += "output_dir = %s\n\n" % self.output_dir

        cstr += "[platform]\n"
        cstr += "platform_key = %s\n" % self.platform_key
        cstr += "clock_module = %s\n" % self.clock_module

        return cstr

    def __repr__(self):
        """Return a string representation of this ``PlatchronyConfig``
        in PlatchronyConfig initialiser notation.
        """
        cstr = 'PlatchronyConfig(cmdline_path="%s", ' % self.cmdline_path
        cstr += 'chrony_conf="%s", pristine_chrony_conf="%s", ' % (
            self.chrony_conf,
            self.pristine_chrony_conf,
        )
        cstr += 'chronyd_sysconfig="%s", pristine_chronyd_sysconfig="%s", ' % (
            self.chronyd_sysconfig,
            self.pristine_chronyd_sysconfig,
        )
        cstr += 'network_sysconfig="%s", ' % self.network_sysconfig
        cstr += 'output_dir="%s", ' % self.output_dir
        cstr += 'platform_key="%s", ' % self.platform_key
        cstr += 'clock_module="%s")' % self.clock_module

        return cstr

    def __init__(
        self,
        cmdline_path=None,
        chrony_conf=None,
        pristine_chrony_conf=None,
        chronyd_sysconfig=None,
        pristine_chronyd_sysconfig=None,
        network_sysconfig=None,
        output_dir=None,
        platform_key=None,
        clock_module=None,
    ):
        """Initialise a new ``PlatchronyConfig`` object with the supplied
        configuration values, or defaults for any unset arguments.

        :param cmdline_path: the file holding the kernel command line
        :param chrony_conf: the installed chronyd configuration
        :param pristine_chrony_conf: the as-shipped chronyd configuration
        :param chronyd_sysconfig: the installed chronyd options file
        :param pristine_chronyd_sysconfig: the as-shipped options file
        :param network_sysconfig: the network configuration file
        :param output_dir: the directory receiving generated files
        :param platform_key: the boot parameter naming the platform
        :param clock_module: the PTP clock kernel module for qemu
        """
        self.cmdline_path = cmdline_path or self.cmdline_path
        self.chrony_conf = chrony_conf or self.chrony_conf
        self.pristine_chrony_conf = pristine_chrony_conf or self.pristine_chrony_conf
        self.chronyd_sysconfig = chronyd_sysconfig or self.chronyd_sysconfig
        self.pristine_chronyd_sysconfig = (
            pristine_chronyd_sysconfig or self.pristine_chronyd_sysconfig
        )
        self.network_sysconfig = network_sysconfig or self.network_sysconfig
        self.output_dir = output_dir or self.output_dir
        self.platform_key = platform_key or self.platform_key
        self.clock_module = clock_module or self.clock_module

    @property
    def generated_conf(self):
        """The path of the generated chronyd configuration."""
        return path_join(self.output_dir, GENERATED_CONF_NAME)

    @property
    def generated_options(self):
        """The path of the generated chronyd options file."""
        return path_join(self.output_dir, GENERATED_OPTIONS_NAME)


__config = PlatchronyConfig()


def set_platchrony_config(config):
    """Set the active configuration to the object ``config`` (which may
    be any class that includes the ``PlatchronyConfig`` attributes).

    :param config: a configuration object
    :returns: None
    :raises: TypeError if ``config`` does not appear to have the
             correct attributes.
    """
    global __config

    def has_value(obj, attr):
        return hasattr(obj, attr) and getattr(obj, attr) is not None

    if not (has_value(config, "chrony_conf") and has_value(config, "output_dir")):
        raise TypeError("config does not appear to be a PlatchronyConfig object.")

    __config = config


def get_platchrony_config():
    """Return the active ``PlatchronyConfig`` object.

    :rtype: PlatchronyConfig
    :returns: the active configuration object
    """
    return __config


#
# Generic routines for parsing name-value pairs.
#


def blank_or_comment(line):
    """Test whether line is empty of contains a comment.

    Test whether the ``line`` argument is either blank, or a
    whole-line comment.

    :param line: the line of text to be checked.
    :returns: ``True`` if the line is blank or a comment,
              and ``False`` otherwise.
    :rtype: bool
    """
    return not line.strip() or line.lstrip().startswith("#")


#: Characters a backslash escapes inside a double quoted value
_ESCAPED = ("\\", '"', "$", "`")


def _split_quoted(value):
    """Split a quoted ``value`` into the unquoted text and whatever
    follows the closing quote.

    Within double quotes a backslash escapes ``\\``, ``"``, ``$`` and
    a backtick, as in the shell. Single quoted text is taken literally.

    :param value: a string starting with a quote character.
    :returns: a ``(text, tail)`` tuple.
    :raises: ValueError if the closing quote is missing.
    """
    quote = value[0]
    chars = []
    i = 1
    while i < len(value):
        c = value[i]
        if c == quote:
            return ("".join(chars), value[i + 1:])
        if quote == '"' and c == "\\" and value[i + 1:i + 2] in _ESCAPED:
            i += 1
            c = value[i]
        chars.append(c)
        i += 1
    raise ValueError("Unterminated quoted value: %s" % value)


def parse_name_value(nvp, separator="=", allow_empty=False):
    """Parse a name value pair string.

    Parse a ``name='value'`` style string into its component parts,
    stripping quotes from the value if necessary, and return the
    result as a (name, value) tuple. Backslash escapes inside double
    quotes are removed as the shell would remove them.

    :param nvp: A name value pair optionally with an in-line
                comment.
    :param separator: The separator character used in this name
                      value pair, or ``None`` to split on white
                      space.
    :param allow_empty: Accept a bare name with no value.
    :returns: A ``(name, value)`` tuple.
    :rtype: (string, string) tuple.
    """
    val_err = ValueError("Malformed name/value pair: %s" % nvp)
    try:
        # Only strip newlines: values may contain embedded
        # whitespace anywhere within the string.
        name, value = nvp.rstrip("\n").split(separator, 1)
    except ValueError:
        if not allow_empty or not nvp:
            raise val_err
        name = nvp.strip(separator)
        value = None

    # Value cannot start with '='
    if value and value.startswith("="):
        raise val_err

    name = name.strip()
    value = value.strip() if value else None

    valid_name_chars = string.ascii_letters + string.digits + "_-."
    bad_chars = [c for c in name if c not in valid_name_chars]
    if not name or any(bad_chars):
        raise ValueError("Invalid characters in name: %s (%s)" % (name, bad_chars))

    if not value:
        return (name, value)

    if value[0] in "\"'":
        # Quoted values end at the matching quote: only a comment
        # may follow it.
        try:
            (value, tail) = _split_quoted(value)
        except ValueError:
            raise val_err
        tail = tail.strip()
        if tail and not tail.startswith("#"):
            raise val_err
    elif "#" in value:
        value, comment = value.split("#", 1)
        value = value.rstrip()

    return (name, value)


def write_file_atomic(path, data, mode=GENERATED_FILE_MODE):
    """Write ``data`` to ``path`` replacing any existing file.

    The data is written to a temporary file in the directory containing
    ``path`` which is then renamed into place: readers see either the
    old or the new content, never a partial file. The directory is
    created if it does not exist.

    :param path: the file to write.
    :param data: the text to write.
    :param mode: the permissions of the new file.
    :rtype: None
    """
    file_dir = dirname(path)
    if not isdir(file_dir):
        makedirs(file_dir, exist_ok=True)
    (tmp_fd, tmp_path) = mkstemp(prefix=".platchrony", dir=file_dir)

    with fdopen(tmp_fd, "w", encoding=TEXT_ENCODING,
                errors=TEXT_ERRORS) as f_tmp:
        f_tmp.write(data)
        f_tmp.flush()
        fdatasync(tmp_fd)

    try:
        chmod(tmp_path, mode)
        rename(tmp_path, path)
    except Exception as e:
        _log_error("Error writing file %s: %s", path, e)
        try:
            unlink(tmp_path)
        except Exception:
            _log_error("Error unlinking temporary path %s", tmp_path)
        raise e
    _log_debug("wrote %s", path)


def read_lines(path):
    """Return the lines of the text file at ``path`` without line
    terminators.

    Bytes that do not decode as UTF-8 are kept as surrogate escapes
    and are written back unchanged by ``write_file_atomic()``.

    :param path: the file to read.
    :rtype: list
    """
    with open(path, "r", encoding=TEXT_ENCODING, errors=TEXT_ERRORS) as f:
        return [line.rstrip("\n") for line in f]


__all__ = [
    # platchrony module constants
    "DEFAULT_PLATCHRONY_DIR",
    "PLATCHRONY_CONFIG_FILE",
    "DEFAULT_PLATCHRONY_CONFIG_PATH",
    "DEFAULT_CMDLINE_PATH",
    "DEFAULT_CHRONY_CONF",
    "DEFAULT_PRISTINE_CHRONY_CONF",
    "DEFAULT_CHRONYD_SYSCONFIG",
    "DEFAULT_PRISTINE_CHRONYD_SYSCONFIG",
    "DEFAULT_NETWORK_SYSCONFIG",
    "DEFAULT_OUTPUT_DIR",
    "GENERATED_CONF_NAME",
    "GENERATED_OPTIONS_NAME",
    "DEFAULT_PLATFORM_KEY",
    "DEFAULT_CLOCK_MODULE",
    "GENERATED_FILE_MODE",
    "TEXT_ENCODING",
    "TEXT_ERRORS",
    "EXIT_OK",
    "EXIT_FAILURE",
    # API Classes
    "PlatchronyConfig",
    # Persistent configuration
    "set_platchrony_config",
    "get_platchrony_config",
    # platchrony exception base class
    "PlatchronyError",
    # platchrony logger class (used by test suite)
    "PlatchronyLogger",
    # Debug logging
    "get_debug_mask",
    "set_debug_mask",
    "parse_debug_mask",
    "PLATCHRONY_DEBUG_CMDLINE",
    "PLATCHRONY_DEBUG_GUARD",
    "PLATCHRONY_DEBUG_CONF",
    "PLATCHRONY_DEBUG_SYSCONFIG",
    "PLATCHRONY_DEBUG_COMMAND",
    "PLATCHRONY_DEBUG_ALL",
    "PLATCHRONY_DEBUG_NAMES",
    # Utility routines
    "blank_or_comment",
    "parse_name_value",
    "write_file_atomic",
    "read_lines",
]

# vim: set et ts=4 sw=4 :
