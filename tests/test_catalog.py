# tests/test_catalog.py

"""Tests for the tracked product catalog."""

import tempfile
import unittest
from pathlib import Path

from price_tracker.models.errors import CatalogError
from price_tracker.models.product import TrackedProduct
from price_tracker.storage.catalog import (
    Catalog,
    is_valid_url,
    load_url_file,
    normalize_url,
)


class TestNormalizeUrl(unittest.TestCase):
    """Tests for URL normalization logic."""

    def test_strips_tracking_params(self) -> None:
        """Amazon tracking params should be removed."""
        raw = (
            "https://www.amazon.com/Nikon-Z6/dp/B07J4FGLXH"
            "/ref=sr_1_3?dib=abc&qid=123&sr=8-3&keywords=nikon"
        )
        result = normalize_url(raw)
        self.assertEqual(
            result, "https://www.amazon.com/Nikon-Z6/dp/B07J4FGLXH"
        )

    def test_preserves_non_tracking_params(self) -> None:
        """Unknown params should be preserved."""
        url = "https://example.com/product?color=red&size=L"
        result = normalize_url(url)
        self.assertIn("color=red", result)
        self.assertIn("size=L", result)

    def test_strips_fragment(self) -> None:
        """URL fragments should be dropped."""
        self.assertNotIn("#", normalize_url("https://example.com/p#reviews"))


class TestIsValidUrl(unittest.TestCase):
    """Only absolute http(s) URLs are accepted."""

    def test_valid(self) -> None:
        """http and https with a host are valid."""
        self.assertTrue(is_valid_url("https://www.amazon.com/dp/B0001"))
        self.assertTrue(is_valid_url("http://example/widget"))

    def test_invalid(self) -> None:
        """Relative, schemeless and non-http URLs are rejected."""
        for url in ("www.google.com", "/dp/B0001", "ftp://x/y", "", "https://"):
            with self.subTest(url=url):
                self.assertFalse(is_valid_url(url))


class TestLoadUrlFile(unittest.TestCase):
    """Reading URL lists from text files."""

    def test_skips_blank_comment_and_malformed(self) -> None:
        """Only well-formed URLs are returned, in file order."""
        tmp = Path(tempfile.mkdtemp()) / "urls.txt"
        tmp.write_text(
            "# cameras\n"
            "https://www.amazon.com/dp/B0001\n"
            "\n"
            "not a url\n"
            "  https://www.amazon.com/dp/B0002  \n",
            encoding="utf-8",
        )
        self.assertEqual(
            load_url_file(tmp),
            [
                "https://www.amazon.com/dp/B0001",
                "https://www.amazon.com/dp/B0002",
            ],
        )


class TestCatalog(unittest.TestCase):
    """Catalog add / remove / get / list."""

    def setUp(self) -> None:
        """Create a fresh temp DB for each test."""
        self.db_path = Path(tempfile.mkdtemp()) / "catalog.db"
        self.catalog = Catalog(db_path=self.db_path)

    def tearDown(self) -> None:
        """Close the database."""
        self.catalog.close()

    def test_add_and_get(self) -> None:
        """Added products can be looked up by name."""
        stored = self.catalog.add(
            TrackedProduct("Widget", "http://example/widget")
        )
        self.assertEqual(self.catalog.get("Widget"), stored)

    def test_add_normalizes_url_and_name(self) -> None:
        """Tracking params and surrounding spaces are removed."""
        stored = self.catalog.add(TrackedProduct(
            "  Nikon Z6 ",
            "https://www.amazon.com/dp/B07J4FGLXH/ref=sr_1_3?qid=1",
        ))
        self.assertEqual(stored.name, "Nikon Z6")
        self.assertEqual(stored.url, "https://www.amazon.com/dp/B07J4FGLXH")

    def test_duplicate_name_rejected(self) -> None:
        """Names are unique within the catalog."""
        self.catalog.add(TrackedProduct("Widget", "http://example/a"))
        with self.assertRaises(CatalogError):
            self.catalog.add(TrackedProduct("Widget", "http://example/b"))

    def test_bad_url_rejected(self) -> None:
        """Relative or schemeless URLs never reach the pipeline."""
        with self.assertRaises(CatalogError):
            self.catalog.add(TrackedProduct("Widget", "www.google.com"))

    def test_blank_name_rejected(self) -> None:
        """Empty names cannot key a time series."""
        with self.assertRaises(CatalogError):
            self.catalog.add(TrackedProduct("  ", "http://example/a"))

    def test_remove(self) -> None:
        """remove() reports whether anything was deleted."""
        self.catalog.add(TrackedProduct("Widget", "http://example/a"))
        self.assertTrue(self.catalog.remove("Widget"))
        self.assertFalse(self.catalog.remove("Widget"))
        self.assertIsNone(self.catalog.get("Widget"))

    def test_list_sorted_by_name(self) -> None:
        """list_products() is ordered by name."""
        self.catalog.add(TrackedProduct("Zoom Lens", "http://example/z"))
        self.catalog.add(TrackedProduct("Camera", "http://example/c"))
        self.assertEqual(
            [p.name for p in self.catalog.list_products()],
            ["Camera", "Zoom Lens"],
        )

    def test_shares_file_with_observation_store(self) -> None:
        """Catalog and store can live in the same database file."""
        from price_tracker.storage.observation_store import (
            SQLiteObservationStore,
        )

        store = SQLiteObservationStore(db_path=self.db_path)
        self.catalog.add(TrackedProduct("Widget", "http://example/a"))
        self.assertEqual(store.history("Widget"), [])
        store.close()


if __name__ == "__main__":
    unittest.main()
