import unittest

from tests import fakes  # noqa: F401

from app.normalize.markdown_html import BULLET, markdown_to_html


class MarkdownToHtmlTests(unittest.TestCase):
    def test_headings_emphasis_and_bullets(self):
        text = "# Jane Doe\n**Engineer** at *Acme*\n- Python\n- SQL"
        self.assertEqual(
            markdown_to_html(text),
            "<h3>Jane Doe</h3><br><strong>Engineer</strong> at <em>Acme</em><br>"
            f"{BULLET} Python<br>{BULLET} SQL",
        )

    def test_every_heading_level_is_h3(self):
        self.assertEqual(markdown_to_html("### Skills\n###### Tools"), "<h3>Skills</h3><br><h3>Tools</h3>")

    def test_star_bullets_are_not_italics(self):
        self.assertEqual(markdown_to_html("* Python\n* SQL"), f"{BULLET} Python<br>{BULLET} SQL")

    def test_fenced_code_is_dropped_and_inline_code_kept(self):
        text = "Intro `make build`\n```\nrm -rf /\n```\nEnd"
        html = markdown_to_html(text)
        self.assertNotIn("rm -rf", html)
        self.assertIn("<code>make build</code>", html)
        self.assertTrue(html.endswith("End"))

    def test_links_keep_text_and_ordered_lists_lose_numbers(self):
        text = "See [portfolio](https://example.com)\n1. First\n2. Second"
        self.assertEqual(markdown_to_html(text), "See portfolio<br>First<br>Second")

    def test_no_raw_newlines_and_trimmed(self):
        html = markdown_to_html("  \nSummary\n\n\nDetails\n  ")
        self.assertNotIn("\n", html)
        self.assertEqual(html, html.strip())

    def test_empty(self):
        self.assertEqual(markdown_to_html(""), "")
        self.assertEqual(markdown_to_html(None), "")


if __name__ == "__main__":
    unittest.main()
