"""Extract the links in a markdown document and check whether each of them is alive."""

from __future__ import annotations

import enum
import os
import re
import urllib.parse
from dataclasses import dataclass
from typing import List, Optional, Tuple

import requests
import structlog

LOGGER = structlog.get_logger(__name__)

DEFAULT_TIMEOUT_SECS = 60

FENCE_RE = re.compile(r"^\s{0,3}(?P<delim>`{3,}|~{3,})")
INDENTED_CODE_RE = re.compile(r"^(?: {4}|\t)")
LIST_ITEM_RE = re.compile(r"^\s{0,3}(?:[-*+]|\d+[.)])\s")
CODE_SPAN_RE = re.compile(r"(?<!`)(`+)(?!`)(.+?)(?<!`)\1(?!`)")
# [text](url "title") and ![alt](url); one level of brackets in the text and of parentheses
# in the destination, e.g. [![badge](img.svg)](page.md) or (https://host/wiki/Foo_(bar)).
INLINE_LINK_RE = re.compile(r"!?\[((?:[^\[\]]|\[[^\[\]]*\])*)\]"
                            r"\(\s*(?:<([^>\n]*)>|((?:[^()\s]|\([^()\s]*\))*))"
                            r"(?:\s+(?:\"[^\"]*\"|'[^']*'|\([^)]*\)))?\s*\)")
# [ref]: url, but not footnotes ([^1]: text)
REF_DEF_RE = re.compile(r"^\s{0,3}\[(?!\^)[^\]]+\]:\s*<?([^\s>]+)>?")
# <http://example.com>
AUTOLINK_RE = re.compile(r"<((?:https?|ftp|file|mailto):[^>\s]+)>")
BARE_URL_RE = re.compile(r"https?://[^\s<>\"'()\[\]`]+")
TRAILING_PUNCTUATION = ".,;:!?*_"


class LinkStatus(str, enum.Enum):
    """Classification of a single link."""

    ALIVE = "alive"
    DEAD = "dead"
    IGNORED = "ignored"


@dataclass
class LinkResult:
    """Outcome of checking one link."""

    link: str
    status: LinkStatus
    status_code: Optional[int] = None
    err: Optional[str] = None

    def is_dead(self) -> bool:
        return self.status == LinkStatus.DEAD


def _inline_links(text: str, offset: int = 0) -> List[Tuple[int, int, str]]:
    """Return (start, end, link) for each inline link, including images nested in link text."""
    found = []
    for match in INLINE_LINK_RE.finditer(text):
        destination = match.group(2) if match.group(2) is not None else match.group(3)
        found.append((offset + match.start(), offset + match.end(), destination))
        found.extend(_inline_links(match.group(1), offset + match.start(1)))
    return found


def _links_in_line(line: str) -> List[str]:
    found: List[Tuple[int, str]] = []
    consumed: List[Tuple[int, int]] = []

    line = CODE_SPAN_RE.sub(" ", line)

    for start, end, link in _inline_links(line):
        found.append((start, link))
        consumed.append((start, end))

    for match in AUTOLINK_RE.finditer(line):
        found.append((match.start(), match.group(1)))
        consumed.append(match.span())

    ref_match = REF_DEF_RE.match(line)
    if ref_match:
        found.append((ref_match.start(), ref_match.group(1)))
        consumed.append(ref_match.span())

    for match in BARE_URL_RE.finditer(line):
        if any(start <= match.start() < end for start, end in consumed):
            continue
        found.append((match.start(), match.group(0).rstrip(TRAILING_PUNCTUATION)))

    return [link for _, link in sorted(found, key=lambda item: item[0])]


def extract_links(markdown: str) -> List[str]:
    """
    Collect the distinct links of a markdown document in the order they first appear.

    Links inside code (fenced blocks, indented blocks and inline code spans) are not collected.

    :param markdown: Markdown text.
    :return: List of links.
    """
    links: List[str] = []
    seen = set()
    fence_delim = None
    prev_blank = True
    in_indented_code = False
    in_list = False
    for line in markdown.splitlines():
        fence_match = None if in_indented_code else FENCE_RE.match(line)
        if fence_match:
            delim = fence_match.group("delim")
            if fence_delim is None:
                fence_delim = delim
                continue
            if delim[0] == fence_delim[0] and len(delim) >= len(fence_delim):
                fence_delim = None
                prev_blank = False
                continue
        if fence_delim is not None:
            continue

        if not line.strip():
            prev_blank = True
            continue
        indented = INDENTED_CODE_RE.match(line) is not None
        # An indented line only starts a code block after a blank line and outside of a list.
        if indented and (in_indented_code or (prev_blank and not in_list)):
            in_indented_code = True
            prev_blank = False
            continue
        in_indented_code = False
        if LIST_ITEM_RE.match(line):
            in_list = True
        elif not indented and prev_blank:
            in_list = False
        prev_blank = False

        for link in _links_in_line(line):
            if link not in seen:
                seen.add(link)
                links.append(link)
    return links


def _check_http(url: str, session: requests.Session, timeout: float) -> LinkResult:
    try:
        response = session.head(url, allow_redirects=True, timeout=timeout)
        if not response.ok:
            # Plenty of servers reject or mishandle HEAD; give GET one chance.
            response = session.get(url, allow_redirects=True, timeout=timeout, stream=True)
            response.close()
    except requests.RequestException as err:
        return LinkResult(url, LinkStatus.DEAD, err=str(err))

    if 200 <= response.status_code < 300:
        return LinkResult(url, LinkStatus.ALIVE, status_code=response.status_code)
    return LinkResult(url, LinkStatus.DEAD, status_code=response.status_code)


def _check_file(link: str, url: str) -> LinkResult:
    path = urllib.parse.unquote(urllib.parse.urlparse(url).path)
    if os.path.exists(path):
        return LinkResult(link, LinkStatus.ALIVE)
    return LinkResult(link, LinkStatus.DEAD, err="file does not exist: {}".format(path))


def check_link(link: str, base_url: Optional[str], session: requests.Session,
               timeout: float = DEFAULT_TIMEOUT_SECS) -> LinkResult:
    """
    Check a single link.

    :param link: Link as written in the markdown.
    :param base_url: URL relative links are resolved against, or None.
    :param session: HTTP session used for http(s) links.
    :param timeout: Timeout of each HTTP request, in seconds.
    :return: Result for the link.
    """
    if not link or link.startswith("#"):
        return LinkResult(link, LinkStatus.IGNORED)

    scheme = urllib.parse.urlparse(link).scheme.lower()
    if scheme in ("http", "https"):
        return _check_http(link, session, timeout)
    if scheme == "file":
        return _check_file(link, link)
    if scheme:
        return LinkResult(link, LinkStatus.IGNORED)

    if not base_url:
        return LinkResult(link, LinkStatus.DEAD, err="relative link without a base url")
    url = urllib.parse.urljoin(base_url.rstrip("/") + "/", link)
    resolved = check_link(url, None, session, timeout)
    resolved.link = link
    return resolved


def check_markdown(markdown: str, base_url: Optional[str] = None,
                   timeout: float = DEFAULT_TIMEOUT_SECS,
                   session: Optional[requests.Session] = None) -> List[LinkResult]:
    """
    Check every link of a markdown document.

    :param markdown: Markdown text.
    :param base_url: URL relative links are resolved against (e.g. "file:///path/to/dir").
    :param timeout: Timeout of each HTTP request, in seconds.
    :param session: HTTP session to reuse; a new one is opened when not given.
    :return: One result per distinct link, in document order.
    """
    if session is None:
        with requests.Session() as new_session:
            return check_markdown(markdown, base_url, timeout, new_session)

    results = []
    for link in extract_links(markdown):
        result = check_link(link, base_url, session, timeout)
        LOGGER.debug("Checked link", link=link, status=result.status.value,
                     status_code=result.status_code)
        results.append(result)
    return results
