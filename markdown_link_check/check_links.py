#!/usr/bin/env python3
"""
Detect dead links in the markdown files touched by a pull request.

Usage:
    python -m markdown_link_check.check_links --files=README.md,docs/building.md

Links known to be invalid on CI hosts are filtered out first (see whitelist.py). Dead links
pointing at files added by the pull request are not reported, since those files only exist
once the change is merged. Files listed in --files that no longer exist are skipped.

Exit Codes
----------
0 = all links alive
1 = --files missing, or one or more dead links found
"""

from __future__ import annotations

import concurrent.futures
import os
import sys
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

import structlog
import typer
from typing_extensions import Annotated

# Get relative imports to work when the package is not installed on the PYTHONPATH.
if __name__ == "__main__" and __package__ is None:
    sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from markdown_link_check.git import DEFAULT_BASE_BRANCH, Repository
from markdown_link_check.link_check import DEFAULT_TIMEOUT_SECS, LinkResult, check_markdown
from markdown_link_check.util.cmdutils import configure_structlog, enable_logging
from markdown_link_check.whitelist import filter_whitelisted_links

configure_structlog()
LOGGER = structlog.get_logger(__name__)

STATUS_OK = 0
STATUS_ERROR = 1

WHITELIST_MODULE = "markdown_link_check/whitelist.py"
DEFAULT_WORKERS = min(32, (os.cpu_count() or 4))

app = typer.Typer(pretty_exceptions_show_locals=False, add_completion=False)


@dataclass
class FileReport:
    """Dead links found in a single markdown file."""

    path: str
    exists: bool = True
    dead_links: List[str] = field(default_factory=list)

    @property
    def has_dead_links(self) -> bool:
        return bool(self.dead_links)


@dataclass
class LinkCheckReport:
    """Dead links found across all markdown files of a run."""

    files: List[FileReport] = field(default_factory=list)

    @property
    def files_with_dead_links(self) -> List[str]:
        return [report.path for report in self.files if report.has_dead_links]

    @property
    def passed(self) -> bool:
        return not self.files_with_dead_links


def _style(text: str, color: str) -> str:
    """Colour text for the console; CI log files get it plain."""
    if not sys.stdout.isatty():
        return text
    return typer.style(text, fg=color)


def is_link_to_added_file(link: str, added_files: Iterable[str]) -> bool:
    """
    Determine if a link points to a file added in the pull request.

    Only the base name of each added file is compared, and it only has to occur somewhere in
    the link.

    :param link: Link being tested.
    :param added_files: Paths of the files added in the pull request.
    :return: True if the link points to a file added in the pull request.
    """
    return any(
        os.path.basename(added) and os.path.basename(added) in link for added in added_files)


def run_link_checker(markdown_file: str,
                     timeout: float = DEFAULT_TIMEOUT_SECS) -> Optional[List[LinkResult]]:
    """
    Read a markdown file, filter out whitelisted links and check the rest.

    :param markdown_file: Path of the markdown file, relative to the invocation root.
    :param timeout: Timeout of each HTTP request, in seconds.
    :return: Results for the file, or None if the file was deleted by the pull request.
    """
    if not os.path.exists(markdown_file):
        return None
    with open(markdown_file, "r", encoding="utf-8") as file_handle:
        markdown = file_handle.read()
    filtered_markdown = filter_whitelisted_links(markdown)
    base_url = "file://" + os.path.dirname(os.path.abspath(markdown_file))
    return check_markdown(filtered_markdown, base_url=base_url, timeout=timeout)


def _run_link_checkers(markdown_files: List[str], workers: int,
                       timeout: float) -> List[Optional[List[LinkResult]]]:
    with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as exe:
        futures = [exe.submit(run_link_checker, f, timeout) for f in markdown_files]
        concurrent.futures.wait(futures)
    # Any failed check fails the whole run.
    return [fut.result() for fut in futures]


def report_results(markdown_files: List[str], all_results: List[Optional[List[LinkResult]]],
                   added_files: List[str]) -> LinkCheckReport:
    """
    Log the dead links of each file and collect them in a report.

    :param markdown_files: Files that were checked.
    :param all_results: Link checker results, in the same order as markdown_files.
    :param added_files: Files added by the pull request.
    :return: Report of the run.
    """
    report = LinkCheckReport()
    for markdown_file, results in zip(markdown_files, all_results):
        # Skip files that were deleted by the PR.
        if results is None or not os.path.exists(markdown_file):
            report.files.append(FileReport(markdown_file, exists=False))
            continue

        file_report = FileReport(markdown_file)
        for result in results:
            # Skip links to files that were added by the PR.
            if not result.is_dead() or is_link_to_added_file(result.link, added_files):
                continue
            file_report.dead_links.append(result.link)
            LOGGER.error("[{}] {}".format(_style("✖", typer.colors.RED), result.link))

        if file_report.has_dead_links:
            LOGGER.error(" ".join([
                _style("ERROR", typer.colors.RED),
                "Possible dead link(s) found in",
                _style(markdown_file, typer.colors.MAGENTA),
                "(please update, or whitelist in {}).".format(WHITELIST_MODULE),
            ]))
        else:
            LOGGER.info(" ".join([
                _style("SUCCESS", typer.colors.GREEN),
                "All links in",
                _style(markdown_file, typer.colors.MAGENTA),
                "are alive.",
            ]))
        report.files.append(file_report)

    if report.passed:
        LOGGER.info(" ".join([
            _style("SUCCESS", typer.colors.GREEN),
            "All links in all markdown files in this PR are alive.",
        ]))
    else:
        LOGGER.error(" ".join([
            _style("ERROR", typer.colors.RED),
            "Possible dead link(s) found in this PR.",
            "Please update",
            _style(",".join(report.files_with_dead_links), typer.colors.MAGENTA),
            "or whitelist in {}".format(WHITELIST_MODULE),
        ]))
    return report


def check_links(markdown_files: List[str], base_branch: str = DEFAULT_BASE_BRANCH,
                workers: int = DEFAULT_WORKERS,
                timeout: float = DEFAULT_TIMEOUT_SECS) -> LinkCheckReport:
    """
    Check all markdown files for dead links.

    :param markdown_files: Paths of the markdown files to check.
    :param base_branch: Branch the pull request is compared against.
    :param workers: Number of files checked concurrently.
    :param timeout: Timeout of each HTTP request, in seconds.
    :return: Report of the run.
    """
    LOGGER.debug("Checking markdown files", files=markdown_files)
    all_results = _run_link_checkers(markdown_files, workers, timeout)
    added_files = Repository.current_repository().get_added_files(base_branch)
    LOGGER.debug("Files added in this PR", files=added_files)
    return report_results(markdown_files, all_results, added_files)


@app.command()
def main(
    files: Annotated[
        str,
        typer.Option(help="CSV list of files in which to check links"),
    ] = "",
    base_branch: Annotated[
        str,
        typer.Option(envvar="BASE_BRANCH", help="Branch the pull request is compared against"),
    ] = DEFAULT_BASE_BRANCH,
    workers: Annotated[
        int,
        typer.Option(min=1, help="Number of markdown files checked concurrently"),
    ] = DEFAULT_WORKERS,
    timeout: Annotated[
        float,
        typer.Option(min=0, help="Timeout of each HTTP request, in seconds"),
    ] = DEFAULT_TIMEOUT_SECS,
    verbose: Annotated[bool, typer.Option(help="Enable verbose logging")] = False,
):
    """Detect dead links in markdown files."""
    if not files:
        typer.secho("Error: A list of markdown files must be specified via --files",
                    fg=typer.colors.RED, err=True)
        raise typer.Exit(code=STATUS_ERROR)

    enable_logging(verbose)
    markdown_files = [f for f in files.split(",") if f]
    report = check_links(markdown_files, base_branch, workers, timeout)
    if not report.passed:
        raise typer.Exit(code=STATUS_ERROR)


if __name__ == "__main__":
    app()
