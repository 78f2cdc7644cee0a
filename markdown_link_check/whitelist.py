"""Links that are stripped from markdown before it is checked for dead links."""

import re
from typing import List

# Applied in order, each on the output of the previous one.
WHITELIST_PATTERNS: List[re.Pattern] = [
    # localhost links optionally preceded by ( or [ (not served on CI hosts)
    re.compile(r"(\(|\[)?http://localhost:8000"),
    # Links in script tags (illustrative, and not always valid)
    re.compile(r'src="http.*?"'),
    # Direct links to the https://cdn.ampproject.org domain (not a valid page)
    re.compile(r"https://cdn\.ampproject\.org(?!/)"),
]


def filter_whitelisted_links(markdown: str) -> str:
    """
    Filter out whitelisted links before running the link checker.

    :param markdown: Original markdown.
    :return: Markdown after filtering out whitelisted links.
    """
    filtered_markdown = markdown
    for pattern in WHITELIST_PATTERNS:
        filtered_markdown = pattern.sub("", filtered_markdown)
    return filtered_markdown
