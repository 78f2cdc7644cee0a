"""Module to run git commands on a repository."""

import logging
import os
import subprocess

LOGGER = logging.getLogger(__name__)

DEFAULT_BASE_BRANCH = "master"


class Repository(object):
    """Represent a local git repository."""

    def __init__(self, directory):
        self.directory = directory

    def get_added_files(self, base_branch=DEFAULT_BASE_BRANCH):
        """
        List the files added between 'base_branch' and HEAD.

        A failing git command is not fatal: its output is logged and an empty list is returned,
        so that no link gets excused by accident.
        """
        result = self._run_cmd(
            "diff", ["--name-only", "--diff-filter=A", "{}...HEAD".format(base_branch)])
        if result.returncode:
            LOGGER.warning("Could not list files added since '%s'; no links will be excused",
                           base_branch)
            return []
        return [line for line in result.stdout.strip().splitlines() if line]

    @staticmethod
    def current_repository():
        """Return the Repository the current working directory belongs to."""
        return Repository(os.getcwd())

    def _run_cmd(self, cmd, args):
        """Run the git command and return a GitCommandResult instance."""

        params = ["git", cmd] + args
        return self._run_process(cmd, params, cwd=self.directory)

    @staticmethod
    def _run_process(cmd, params, cwd=None):
        try:
            process = subprocess.Popen(params, stdout=subprocess.PIPE, stderr=subprocess.PIPE,
                                       cwd=cwd, universal_newlines=True)
        except FileNotFoundError as err:
            LOGGER.error("Unable to run '%s': %s", " ".join(params), err)
            return GitCommandResult(cmd, params, 127, stdout="", stderr=str(err))
        (stdout, stderr) = process.communicate()
        if process.returncode:
            if stdout:
                LOGGER.error("Output of '%s': %s", " ".join(params), stdout)
            if stderr:
                LOGGER.error("Error output of '%s': %s", " ".join(params), stderr)
        return GitCommandResult(cmd, params, process.returncode, stdout=stdout, stderr=stderr)


class GitCommandResult(object):
    """The result of running git subcommand.

    Args:
        cmd: the git subcommand that was executed (e.g. 'diff', 'rev-parse').
        process_args: the full list of process arguments, starting with the 'git' command.
        returncode: the return code.
        stdout: the output of the command.
        stderr: the error output of the command.
    """

    def __init__(self, cmd, process_args, returncode, stdout=None, stderr=None):
        self.cmd = cmd
        self.process_args = process_args
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr

