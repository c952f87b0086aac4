# Copyright Red Hat
#
# platchrony/platform.py - Platform time source profiles
#
# This file is part of the platchrony project.
#
# SPDX-License-Identifier: GPL-2.0-only
"""The ``platchrony.platform`` module identifies the platform that the
system was booted on and defines the time source profile used for each
supported platform.

Each ``PlatformProfile`` names the directives that it enables again in
the generated configuration and the block of directives that it
appends. Profiles are registered in a table keyed by the platform
identifier: an identifier with no profile is an internal error, since
platchrony only runs on supported platforms.
"""
import logging

from platchrony import PlatchronyError, PLATCHRONY_DEBUG_CONF
from platchrony.system import load_kernel_module

# Module logging configuration
_log = logging.getLogger(__name__)
_log.set_debug_mask(PLATCHRONY_DEBUG_CONF)

_log_debug = _log.debug
_log_debug_conf = _log.debug_masked
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error

#: Amazon Web Services
PLATFORM_AWS = "aws"
#: Microsoft Azure
PLATFORM_AZURE = "azure"
#: Microsoft Azure Stack Hub
PLATFORM_AZURESTACK = "azurestack"
#: Google Cloud Platform
PLATFORM_GCP = "gcp"
#: QEMU/KVM virtual machines
PLATFORM_QEMU = "qemu"

#: All supported platforms.
PLATFORMS = (
    PLATFORM_AWS,
    PLATFORM_AZURE,
    PLATFORM_AZURESTACK,
    PLATFORM_GCP,
    PLATFORM_QEMU,
)


class PlatformError(PlatchronyError):
    """platchrony exception indicating a platform that has no time
    source profile.
    """

    pass


class PlatformProfile(object):
    """PlatformProfile()

    The chronyd time sources for one platform: a list of directives
    re-enabled in the generated configuration, and a list of directives
    appended to it.
    """

    #: The platform identifier
    platform = None
    #: A human readable description of the time source
    description = None
    #: Directives appended to the configuration
    directives = None
    #: Disabled directives that are enabled again
    enable = None

    def __init__(self, platform, description, directives, enable=None):
        """Initialise a new ``PlatformProfile``.

        :param platform: the platform identifier.
        :param description: a comment introducing the appended block.
        :param directives: the directive lines to append.
        :param enable: directives to enable again, if any.
        """
        self.platform = platform
        self.description = description
        self.directives = list(directives)
        self.enable = list(enable or [])

    def __str__(self):
        return "%s: %s" % (self.platform, "; ".join(self.directives))

    def __repr__(self):
        return (
            'PlatformProfile(platform="%s", description="%s", '
            "directives=%s, enable=%s)"
            % (self.platform, self.description, self.directives, self.enable)
        )

    def apply(self, conf):
        """Apply this profile to the ``ChronyConf`` object ``conf``.

        :param conf: the configuration to modify.
        :rtype: None
        """
        _log_debug_conf("applying %s profile", self.platform)
        for directive in self.enable:
            conf.enable_directive(directive)
        conf.append_block(self.directives, comment=self.description)


# The Azure PTP device is provided by the Hyper-V integration services:
# it reports UTC with leap seconds applied, so the leap second table is
# needed again.
_azure_profile = [
    "refclock PHC /dev/ptp_hyperv poll 3 dpoll -2 offset 0",
    "leapsectz right/UTC",
]

_profiles = {
    PLATFORM_AZURE: PlatformProfile(
        PLATFORM_AZURE, "Azure: Hyper-V host PTP clock", _azure_profile
    ),
    PLATFORM_AZURESTACK: PlatformProfile(
        PLATFORM_AZURESTACK, "Azure Stack: Hyper-V host PTP clock", _azure_profile
    ),
    PLATFORM_AWS: PlatformProfile(
        PLATFORM_AWS,
        "AWS: Amazon Time Sync Service",
        ["server 169.254.169.123 prefer iburst minpoll 4 maxpoll 4"],
    ),
    PLATFORM_GCP: PlatformProfile(
        PLATFORM_GCP,
        "GCP: metadata server NTP",
        ["server metadata.google.internal prefer iburst"],
    ),
    PLATFORM_QEMU: PlatformProfile(
        PLATFORM_QEMU,
        "QEMU: KVM host PTP clock",
        ["refclock PHC /dev/ptp0 poll 2"],
        enable=["pool"],
    ),
}


def get_profile(platform):
    """Return the ``PlatformProfile`` for ``platform``.

    :param platform: a platform identifier.
    :rtype: PlatformProfile
    :raises: PlatformError if ``platform`` has no profile.
    """
    try:
        return _profiles[platform]
    except KeyError:
        raise PlatformError(
            "Unreachable: no time source profile for platform '%s'" % platform
        ) from None


def apply_profile(conf, platform):
    """Apply the time source profile for ``platform`` to ``conf``.

    :param conf: the ``ChronyConf`` to modify.
    :param platform: a platform identifier.
    :rtype: PlatformProfile
    :returns: the profile that was applied.
    :raises: PlatformError if ``platform`` has no profile.
    """
    profile = get_profile(platform)
    profile.apply(conf)
    return profile


def resolve_platform(cmdline, key):
    """Return the platform identifier named by the boot parameter
    ``key``.

    :param cmdline: the ``KernelCmdline`` boot parameters.
    :param key: the platform boot parameter name.
    :returns: the platform identifier, or the empty string if
              ``key`` is not present.
    :rtype: str
    """
    platform = cmdline.lookup(key) or ""
    _log_debug("resolved platform '%s' from %s", platform, key)
    return platform


def probe_platform_clock(platform, module):
    """Make the platform hardware clock available if ``platform``
    needs a kernel module for it.

    Only the ``qemu`` platform uses a clock device provided by a
    loadable module (``ptp_kvm``). The module is missing on hosts
    that do not offer the KVM PTP facility: this is not an error.

    :param platform: a platform identifier.
    :param module: the clock kernel module name.
    :returns: ``True`` if the platform clock is available, or
              ``False`` if there is nothing to configure.
    :rtype: bool
    """
    if platform != PLATFORM_QEMU:
        return True
    if load_kernel_module(module):
        return True
    _log_info("Kernel module %s is not available; not changing the default", module)
    return False


__all__ = [
    "PLATFORM_AWS",
    "PLATFORM_AZURE",
    "PLATFORM_AZURESTACK",
    "PLATFORM_GCP",
    "PLATFORM_QEMU",
    "PLATFORMS",
    "PlatformError",
    "PlatformProfile",
    "get_profile",
    "apply_profile",
    "resolve_platform",
    "probe_platform_clock",
]

# vim: set et ts=4 sw=4 :
