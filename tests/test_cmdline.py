# Copyright Red Hat
#
# tests/test_cmdline.py - platchrony boot parameter tests.
#
# This file is part of the platchrony project.
#
# SPDX-License-Identifier: GPL-2.0-only
import unittest
import logging
from os.path import join

log = logging.getLogger()

from platchrony.cmdline import *

from tests import *


class KernelCmdlineTests(unittest.TestCase):
    """Tests for the KernelCmdline class. Cases in this class do not
        modify on-disk state.
    """
    def setUp(self):
        log.debug("Preparing %s", self._testMethodName)

    def tearDown(self):
        log.debug("Tearing down %s", self._testMethodName)

    def test_lookup(self):
        kc = KernelCmdline("ro quiet ignition.platform.id=gcp console=ttyS0\n")
        self.assertEqual(kc.lookup("ignition.platform.id"), "gcp")
        self.assertEqual(kc.lookup("console"), "ttyS0")

    def test_lookup_absent(self):
        kc = KernelCmdline("ro quiet console=ttyS0")
        self.assertEqual(kc.lookup("ignition.platform.id"), None)
        self.assertFalse("ignition.platform.id" in kc)

    def test_lookup_last_occurrence_wins(self):
        kc = KernelCmdline("ignition.platform.id=aws ro "
                           "ignition.platform.id=qemu")
        self.assertEqual(kc.lookup("ignition.platform.id"), "qemu")

    def test_lookup_flag(self):
        kc = KernelCmdline("ro quiet")
        self.assertEqual(kc.lookup("quiet"), "")
        self.assertTrue("quiet" in kc)

    def test_lookup_value_with_separator(self):
        kc = KernelCmdline("root=UUID=f9e3b0b2 rd.lvm.lv=vg/root")
        self.assertEqual(kc.lookup("root"), "UUID=f9e3b0b2")
        self.assertEqual(kc.lookup("rd.lvm.lv"), "vg/root")

    def test_lookup_empty_value(self):
        kc = KernelCmdline("ignition.platform.id= ro")
        self.assertEqual(kc.lookup("ignition.platform.id"), "")

    def test_lookup_prefix_is_not_a_match(self):
        kc = KernelCmdline("ignition.platform.id.extra=aws")
        self.assertEqual(kc.lookup("ignition.platform.id"), None)

    def test_empty_cmdline(self):
        kc = KernelCmdline("")
        self.assertEqual(len(kc), 0)
        self.assertEqual(kc.lookup("ignition.platform.id"), None)

    def test_params_order(self):
        kc = KernelCmdline("a=1 b c=3 a=4")
        self.assertEqual(kc.params,
                         [("a", "1"), ("b", None), ("c", "3"), ("a", "4")])
        self.assertEqual(len(kc), 4)

    def test_str(self):
        kc = KernelCmdline("  a=1   b\tc=3\n")
        self.assertEqual(str(kc), "a=1 b c=3")

    def test_repr(self):
        kc = KernelCmdline("a=1 b\n")
        self.assertEqual(repr(kc), 'KernelCmdline("a=1 b")')


class ReadCmdlineTests(unittest.TestCase):
    def setUp(self):
        log.debug("Preparing %s", self._testMethodName)
        reset_sandbox()

    def tearDown(self):
        log.debug("Tearing down %s", self._testMethodName)
        rm_sandbox()

    def test_read_cmdline(self):
        kc = read_cmdline(data_path("cmdline"))
        self.assertEqual(kc.lookup("ignition.platform.id"), "aws")
        self.assertEqual(kc.lookup("mitigations"), "auto,nosmt")

    def test_read_cmdline_missing(self):
        with self.assertRaises(CmdlineError):
            read_cmdline(join(SANDBOX_PATH, "nosuch/cmdline"))

    def test_read_cmdline_directory(self):
        with self.assertRaises(CmdlineError):
            read_cmdline(SANDBOX_PATH)

# vim: set et ts=4 sw=4 :
