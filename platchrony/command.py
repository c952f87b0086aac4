# Copyright Red Hat
#
# platchrony/command.py - platchrony command interface
#
# This file is part of the platchrony project.
#
# SPDX-License-Identifier: GPL-2.0-only
"""The ``platchrony.command`` module provides both the procedural API
that generates a platform specific chronyd configuration and the
``platchrony`` command line tool that is run once at boot.

``generate_config()`` runs each step in turn and stops at the first
step that decides there is nothing to do:

 1. Local modifications to the shipped chronyd configuration or options
    file stop the run.
 2. The platform is read from the kernel command line. On ``qemu`` the
    KVM PTP clock module must load, or there is nothing to configure.
 3. The default ``chrony.conf`` is transformed and
 4. the platform time source profile is applied to it.
 5. A chronyd options file selecting the generated configuration is
    written.

No file is written until every decision has been taken.
"""
import logging
import sys
from argparse import ArgumentParser

import platchrony
from platchrony import *
from platchrony.config import load_platchrony_config
from platchrony.cmdline import read_cmdline
from platchrony.guard import check_unmodified
from platchrony.platform import (
    apply_profile,
    probe_platform_clock,
    resolve_platform,
)
from platchrony.chronyconf import read_chrony_conf, write_chrony_conf
from platchrony.sysconfig import (
    disable_peer_ntp,
    format_options,
    merge_options,
    read_options,
    write_options,
)
from platchrony.system import copy_security_label

# Module logging configuration
_log = logging.getLogger(__name__)
_log.set_debug_mask(PLATCHRONY_DEBUG_COMMAND)

_log_debug = _log.debug
_log_debug_command = _log.debug_masked
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error

_default_log_level = logging.INFO
_console_handler = None

#
# Command driven API
#


def generate_config(config=None, dry_run=False, out_file=None):
    """generate_config(config, dry_run, out_file) -> int

    Generate the chronyd configuration and options files for the
    platform named on the kernel command line.

    The run ends early, without error, if the shipped configuration
    has been modified locally or if the ``qemu`` PTP clock module is not
    available.

    :param config: the ``PlatchronyConfig`` to use, or ``None`` for the
                   active configuration.
    :param dry_run: write the generated files to ``out_file`` instead
                    of installing them.
    :param out_file: the stream used for ``dry_run`` output, or
                     ``None`` for ``sys.stdout``.
    :returns: the process exit status.
    :rtype: int
    :raises: ``CmdlineError`` if the boot parameters cannot be read,
             ``PlatformError`` if the platform has no profile and
             ``LabelError`` if the generated configuration cannot be
             labelled.
    """
    config = config or get_platchrony_config()
    _log_debug_command("generating with %s", repr(config))

    if not check_unmodified(config):
        return EXIT_OK

    cmdline = read_cmdline(config.cmdline_path)
    platform = resolve_platform(cmdline, config.platform_key)

    if not probe_platform_clock(platform, config.clock_module):
        return EXIT_OK

    conf = read_chrony_conf(config.chrony_conf)
    apply_profile(conf, platform)

    options = read_options(config.chronyd_sysconfig)
    options = merge_options(options, config.generated_conf)

    if dry_run:
        out_file = out_file or sys.stdout
        out_file.write("# %s\n" % config.generated_conf)
        out_file.write(str(conf))
        out_file.write("# %s\n" % config.generated_options)
        out_file.write(format_options(options))
        return EXIT_OK

    disable_peer_ntp(config.network_sysconfig, platform)

    write_chrony_conf(conf, config.generated_conf)
    copy_security_label(config.chrony_conf, config.generated_conf)
    write_options(options, config.generated_options)

    _log_info("Using %s time sources for chronyd", platform)
    return EXIT_OK


#
# platchrony command line tool
#


def setup_logging(cmd_args):
    """Set up the console log handler for the ``platchrony`` tool.

    :param cmd_args: the parsed command line arguments.
    :rtype: None
    """
    global _console_handler
    level = _default_log_level
    if cmd_args.verbose or cmd_args.debug:
        level = logging.DEBUG

    formatter = logging.Formatter("%(name)s: %(message)s")
    log = logging.getLogger("platchrony")
    log.setLevel(level)
    if _console_handler:
        log.removeHandler(_console_handler)
    _console_handler = logging.StreamHandler()
    _console_handler.setLevel(level)
    _console_handler.setFormatter(formatter)
    log.addHandler(_console_handler)


def shutdown_logging():
    """Remove the console log handler installed by ``setup_logging()``.

    :rtype: None
    """
    global _console_handler
    if _console_handler:
        logging.getLogger("platchrony").removeHandler(_console_handler)
        _console_handler = None


def main(args):
    parser = ArgumentParser(
        prog="platchrony",
        description="Generate a chronyd configuration for this platform",
    )
    parser.add_argument(
        "-c",
        "--config",
        metavar="FILE",
        type=str,
        default=DEFAULT_PLATCHRONY_CONFIG_PATH,
        help="Path to the platchrony configuration file",
    )
    parser.add_argument(
        "-n",
        "--dry-run",
        action="store_true",
        help="Print the generated files instead of writing them",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase verbosity level",
    )
    parser.add_argument(
        "--debug",
        metavar="DEBUGOPTS",
        type=str,
        help="A list of debug options to enable "
        "(%s)" % ", ".join(PLATCHRONY_DEBUG_NAMES),
    )
    parser.add_argument(
        "-V",
        "--version",
        action="version",
        version="%(prog)s " + platchrony.__version__,
    )
    cmd_args = parser.parse_args(args[1:])

    if cmd_args.debug:
        try:
            set_debug_mask(parse_debug_mask(cmd_args.debug))
        except ValueError as e:
            parser.error(str(e))

    setup_logging(cmd_args)
    try:
        config = load_platchrony_config(cmd_args.config)
        return generate_config(config=config, dry_run=cmd_args.dry_run)
    except PlatchronyError as e:
        _log_error("%s", e)
        return EXIT_FAILURE
    finally:
        shutdown_logging()


__all__ = [
    "generate_config",
    "main",
]

# vim: set et ts=4 sw=4 :
