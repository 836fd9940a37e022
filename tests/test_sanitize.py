import unittest

from tests import fakes  # noqa: F401

from app.normalize.sanitize import clean_name, clean_text, final_submission_pass, ultra_clean_for_json


class CleanTextTests(unittest.TestCase):
    def test_collapses_whitespace_and_drops_empty_lines(self):
        raw = "  Jane \t Doe  \n\n\n  Engineer | Lead \x07\r\n"
        self.assertEqual(clean_text(raw), "Jane Doe\nEngineer Lead")

    def test_double_quotes_become_single_quotes(self):
        self.assertEqual(clean_text('He said "ship it"'), "He said 'ship it'")

    def test_empty_input(self):
        self.assertEqual(clean_text(""), "")
        self.assertEqual(clean_text(None), "")
        self.assertEqual(clean_text(" \n\t\n "), "")

    def test_idempotent(self):
        samples = [
            "a\x0b\x0cb\n\n c ",
            "Skills:\t Python |  SQL\r\n\r\n\"Docker\"",
            "x \x00\x01 y\n \n z\x7f",
            "   ",
        ]
        for sample in samples:
            once = clean_text(sample)
            self.assertEqual(clean_text(once), once, msg=repr(sample))

    def test_output_has_no_forbidden_characters(self):
        cleaned = clean_text("a|b\"c\x00d\n\n\ne\t\tf")
        for char in ('"', "|", "\x00", "\t"):
            self.assertNotIn(char, cleaned)
        self.assertNotIn("\n\n", cleaned)
        self.assertNotIn("  ", cleaned)


class UltraCleanTests(unittest.TestCase):
    def test_flattens_to_single_line(self):
        raw = 'Line one\nLine\ttwo | \\ "q"'
        self.assertEqual(ultra_clean_for_json(raw), "Line one Line two 'q'")

    def test_empty_input(self):
        self.assertEqual(ultra_clean_for_json(None), "")


class CleanNameTests(unittest.TestCase):
    def test_keeps_first_two_words_of_first_line(self):
        self.assertEqual(clean_name("  John   Smith Jr\nSoftware Engineer"), "John Smith")

    def test_strips_pipes_and_quotes(self):
        self.assertEqual(clean_name('Jane|"Doe"'), "Jane Doe")

    def test_single_word_and_empty(self):
        self.assertEqual(clean_name("Prince"), "Prince")
        self.assertEqual(clean_name(""), "")


class FinalSubmissionPassTests(unittest.TestCase):
    def test_removes_transport_hostile_characters(self):
        self.assertEqual(final_submission_pass('a\nb\t"c"|\\'), "a b 'c'")


if __name__ == "__main__":
    unittest.main()
