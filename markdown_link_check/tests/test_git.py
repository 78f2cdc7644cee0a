"""Unit tests for the markdown_link_check.git module."""

import subprocess
import unittest

import markdown_link_check.git as _git


class TestRepository(unittest.TestCase):
    def setUp(self):
        self.subprocess = MockSubprocess()
        _git.subprocess = self.subprocess

    def tearDown(self):
        _git.subprocess = subprocess

    def test_get_added_files(self):
        self.subprocess.call_output = "docs/new.md\nsrc/img/logo.png\n\n"
        repo = _git.Repository("/tmp")

        added_files = repo.get_added_files("main")

        self.assertEqual(["docs/new.md", "src/img/logo.png"], added_files)
        self.assertEqual(
            ["git", "diff", "--name-only", "--diff-filter=A", "main...HEAD"],
            self.subprocess.call_args)
        self.assertEqual("/tmp", self.subprocess.call_kwargs["cwd"])

    def test_get_added_files_defaults_to_master(self):
        repo = _git.Repository("/tmp")

        repo.get_added_files()

        self.assertEqual("master...HEAD", self.subprocess.call_args[-1])

    def test_get_added_files_nothing_added(self):
        self.subprocess.call_output = "\n"
        repo = _git.Repository("/tmp")

        self.assertEqual([], repo.get_added_files())

    def test_get_added_files_git_failure(self):
        self.subprocess.call_returncode = 128
        self.subprocess.call_output = "fatal: ambiguous argument 'master...HEAD'"
        repo = _git.Repository("/tmp")

        with self.assertLogs("markdown_link_check.git", level="WARNING"):
            self.assertEqual([], repo.get_added_files())

    def test_get_added_files_git_missing(self):
        self.subprocess.raise_on_popen = FileNotFoundError("git")
        repo = _git.Repository("/tmp")

        with self.assertLogs("markdown_link_check.git", level="ERROR"):
            self.assertEqual([], repo.get_added_files())


class MockSubprocess(object):
    PIPE = subprocess.PIPE
    CalledProcessError = subprocess.CalledProcessError

    def __init__(self):
        self.call_args = None
        self.call_kwargs = None
        self.call_returncode = 0
        self.call_output = ""
        self.raise_on_popen = None

    def Popen(self, args, **kwargs):
        self.call_args = args
        self.call_kwargs = kwargs
        if self.raise_on_popen is not None:
            raise self.raise_on_popen
        return MockProcess(self.call_returncode, self.call_output)


class MockProcess(object):
    def __init__(self, returncode, output):
        self.returncode = returncode
        self._output = output

    def communicate(self):
        return self._output, ""
