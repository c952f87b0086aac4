# Copyright Red Hat
#
# tests/test_chronyconf.py - platchrony chronyd configuration tests.
#
# This file is part of the platchrony project.
#
# SPDX-License-Identifier: GPL-2.0-only
import unittest
import logging
from os.path import join

log = logging.getLogger()

from platchrony.chronyconf import *

from tests import *

_base_lines = [
    "makestep 0.1 3",
    "pool 0.fedora.pool.ntp.org iburst",
    "driftfile /var/lib/chrony/drift",
]


class TransformTests(unittest.TestCase):
    """Tests for the pure line transformation functions. Cases in this
        class do not modify on-disk state.
    """
    def setUp(self):
        log.debug("Preparing %s", self._testMethodName)

    def tearDown(self):
        log.debug("Tearing down %s", self._testMethodName)

    def test_disable_directives(self):
        lines = [
            "makestep 0.1 3",
            "pool 0.fedora.pool.ntp.org iburst",
            "leapsectz right/UTC",
            "driftfile /var/lib/chrony/drift",
            "server ntp.example.com",
        ]
        xlines = [
            "#makestep 0.1 3",
            "#pool 0.fedora.pool.ntp.org iburst",
            "#leapsectz right/UTC",
            "driftfile /var/lib/chrony/drift",
            "server ntp.example.com",
        ]
        self.assertEqual(disable_directives(lines), xlines)

    def test_disable_directives_does_not_modify_input(self):
        lines = list(_base_lines)
        disable_directives(lines)
        self.assertEqual(lines, _base_lines)

    def test_disable_directives_comments_unchanged(self):
        lines = [
            "# pool 1.example.com iburst",
            "#pool 2.example.com iburst",
            "",
            "  # makestep 1 1",
        ]
        self.assertEqual(disable_directives(lines), lines)

    def test_disable_directives_whole_word(self):
        lines = ["poolname foo", "makesteps 1 2", "leapsectzx", "pool"]
        xlines = ["poolname foo", "makesteps 1 2", "leapsectzx", "#pool"]
        self.assertEqual(disable_directives(lines), xlines)

    def test_disable_directives_selected(self):
        self.assertEqual(
            disable_directives(_base_lines, ["makestep"]),
            ["#makestep 0.1 3"] + _base_lines[1:]
        )
        self.assertEqual(disable_directives(_base_lines, []), _base_lines)

    def test_transform_lines(self):
        xlines = [
            GENERATED_HEADER,
            "#makestep 0.1 3",
            "#pool 0.fedora.pool.ntp.org iburst",
            "driftfile /var/lib/chrony/drift",
            "",
            "# Step the system clock on any correction, at any time.",
            "makestep 1.0 -1",
        ]
        self.assertEqual(transform_lines(_base_lines), xlines)

    def test_transform_lines_empty(self):
        lines = transform_lines([])
        self.assertEqual(lines[0], GENERATED_HEADER)
        self.assertEqual(lines[-1], STEP_DIRECTIVE)


class ChronyConfTests(unittest.TestCase):
    def setUp(self):
        log.debug("Preparing %s", self._testMethodName)

    def tearDown(self):
        log.debug("Tearing down %s", self._testMethodName)

    def test_chrony_conf_lines(self):
        cc = ChronyConf(_base_lines)
        self.assertEqual(cc.lines, transform_lines(_base_lines))
        self.assertEqual(str(cc), "\n".join(cc.lines) + "\n")

    def test_chrony_conf_append_block(self):
        cc = ChronyConf(_base_lines)
        cc.append_block(["server 192.0.2.1 iburst"], comment="Test source")
        self.assertEqual(cc.lines[-3:],
                         ["", "# Test source", "server 192.0.2.1 iburst"])
        cc.append_block(["server 192.0.2.2"])
        self.assertEqual(cc.lines[-2:], ["", "server 192.0.2.2"])
        self.assertEqual(len(cc.blocks), 2)

    def test_chrony_conf_enable_directive(self):
        base_lines = ["#pool 1.example.com", "pool 2.example.com",
                      "makestep 0.1 3"]
        cc = ChronyConf(base_lines)
        cc.enable_directive("pool")
        self.assertEqual(cc.lines[1:4],
                         ["#pool 1.example.com", "pool 2.example.com",
                          "#makestep 0.1 3"])
        self.assertNotIn("pool", cc.disabled)

    def test_chrony_conf_enable_directive_not_disabled(self):
        cc = ChronyConf(_base_lines)
        with self.assertRaises(ValueError):
            cc.enable_directive("driftfile")
        cc.enable_directive("pool")
        with self.assertRaises(ValueError):
            cc.enable_directive("pool")

    def test_chrony_conf_repr(self):
        cc = ChronyConf(_base_lines)
        self.assertTrue(repr(cc).startswith("ChronyConf("))

    def test_chrony_conf_instances_independent(self):
        cc1 = ChronyConf(_base_lines)
        cc2 = ChronyConf(_base_lines)
        cc1.enable_directive("pool")
        cc1.append_block(["server 192.0.2.1"])
        self.assertIn("pool", cc2.disabled)
        self.assertEqual(cc2.blocks, [])
        self.assertIn("pool", DISABLED_DIRECTIVES)


class ChronyConfFileTests(unittest.TestCase):
    def setUp(self):
        log.debug("Preparing %s", self._testMethodName)
        reset_sandbox()

    def tearDown(self):
        log.debug("Tearing down %s", self._testMethodName)
        rm_sandbox()

    def test_read_chrony_conf(self):
        cc = read_chrony_conf(data_path("chrony.conf"))
        self.assertIn("#pool 2.fedora.pool.ntp.org iburst", cc.lines)
        self.assertIn("#makestep 1.0 3", cc.lines)
        self.assertIn("#leapsectz right/UTC", cc.lines)
        self.assertIn("driftfile /var/lib/chrony/drift", cc.lines)

    def test_write_chrony_conf(self):
        path = join(SANDBOX_PATH, "run/platchrony/chrony.conf")
        cc = ChronyConf(_base_lines)
        write_chrony_conf(cc, path)
        self.assertEqual(read_file(path), str(cc))

    def test_write_chrony_conf_overwrites(self):
        path = join(SANDBOX_PATH, "chrony.conf")
        write_file(path, "stale content\n" * 100)
        cc = ChronyConf(_base_lines)
        write_chrony_conf(cc, path)
        self.assertEqual(read_file(path), str(cc))

# vim: set et ts=4 sw=4 :
