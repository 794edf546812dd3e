"""Tests for the demo entry point helpers."""

import os
import tempfile
import unittest

from main import _load_properties


class TestLoadProperties(unittest.TestCase):
    """Verify properties files are read the way the demo expects."""

    def _write(self, text):
        """Write text to a temporary properties file and return its path."""
        fd, path = tempfile.mkstemp(suffix=".properties")
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
        self.addCleanup(os.remove, path)
        return path

    def test_no_path(self):
        """No file should mean no properties."""
        self.assertEqual(_load_properties(None), {})

    def test_equals_and_colon_separators(self):
        """Both key=value and key: value lines should be read."""
        path = self._write(
            "hoodie.index.hbase.qps.fraction=0.3\n"
            "hoodie.index.hbase.get.batch.size: 250\n"
            "hoodie.index.hbase.table = trips\n"
        )
        self.assertEqual(
            _load_properties(path),
            {
                "hoodie.index.hbase.qps.fraction": "0.3",
                "hoodie.index.hbase.get.batch.size": "250",
                "hoodie.index.hbase.table": "trips",
            },
        )

    def test_first_separator_wins(self):
        """A value may contain the other separator character."""
        path = self._write("rest.url=http://rest:8080\nlabel: a=b\n")
        self.assertEqual(_load_properties(path), {"rest.url": "http://rest:8080", "label": "a=b"})

    def test_comments_and_blank_lines_are_skipped(self):
        """Lines starting with # or ! and empty lines should be ignored."""
        path = self._write("# index settings\n\n! legacy comment\nqpsFraction=0.2\nnot a property\n")
        self.assertEqual(_load_properties(path), {"qpsFraction": "0.2"})


if __name__ == "__main__":
    unittest.main()
