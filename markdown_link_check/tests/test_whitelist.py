"""Unit tests for whitelist.py."""
import unittest

import markdown_link_check.whitelist as under_test

MARKDOWN = """# Example

Serve the page at http://localhost:8000/foo and open it.
See [the demo](http://localhost:8000/examples/demo.html) and [this][http://localhost:8000].

<script async src="http://example.com/x.js"></script>

The runtime is served from https://cdn.ampproject.org, for example
https://cdn.ampproject.org/v0.js or [the cache](https://cdn.ampproject.org/path).
"""


class TestFilterWhitelistedLinks(unittest.TestCase):
    def test_localhost_links_are_removed(self):
        filtered = under_test.filter_whitelisted_links(MARKDOWN)

        self.assertNotIn("localhost", filtered)
        self.assertIn("/foo and open it", filtered)
        self.assertIn("[the demo]/examples/demo.html)", filtered)

    def test_localhost_on_other_ports_is_kept(self):
        markdown = "http://localhost:9000/foo"

        self.assertEqual(markdown, under_test.filter_whitelisted_links(markdown))

    def test_script_src_is_removed(self):
        filtered = under_test.filter_whitelisted_links(MARKDOWN)

        self.assertNotIn("example.com", filtered)
        self.assertIn("<script async ></script>", filtered)

    def test_relative_src_is_kept(self):
        markdown = '<img src="img/logo.png">'

        self.assertEqual(markdown, under_test.filter_whitelisted_links(markdown))

    def test_only_bare_cdn_root_is_removed(self):
        filtered = under_test.filter_whitelisted_links(MARKDOWN)

        self.assertIn("served from , for example", filtered)
        self.assertIn("https://cdn.ampproject.org/v0.js", filtered)
        self.assertIn("(https://cdn.ampproject.org/path)", filtered)

    def test_filter_is_idempotent(self):
        once = under_test.filter_whitelisted_links(MARKDOWN)

        self.assertEqual(once, under_test.filter_whitelisted_links(once))

    def test_markdown_without_whitelisted_links_is_unchanged(self):
        markdown = "[docs](docs/README.md) and https://github.com/ampproject/amphtml"

        self.assertEqual(markdown, under_test.filter_whitelisted_links(markdown))

    def test_patterns_apply_in_order(self):
        # localhost is stripped first, which leaves a relative src behind.
        markdown = '<script src="http://localhost:8000/x.js"></script>'

        self.assertEqual('<script src="/x.js"></script>',
                         under_test.filter_whitelisted_links(markdown))
        self.assertEqual(3, len(under_test.WHITELIST_PATTERNS))
