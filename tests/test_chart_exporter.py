# tests/test_chart_exporter.py

"""Tests for the Plotly chart exporter."""

import tempfile
import unittest
from datetime import timedelta
from pathlib import Path
from unittest.mock import MagicMock, patch

from price_tracker.models.observation import SOLD_OUT, Price, PriceObservation
from price_tracker.storage.chart_exporter import (
    build_chart,
    export_price_chart,
    split_series,
)
from price_tracker.storage.observation_store import SQLiteObservationStore
from tests.helpers import T0


def _series(product_id: str, values: list) -> list[PriceObservation]:
    return [
        PriceObservation(product_id, T0 + timedelta(days=i), v)
        for i, v in enumerate(values)
    ]


class _StoreMixin:
    """Provide an in-memory store with sample data."""

    store: SQLiteObservationStore

    def _setup_store(self) -> None:
        """Record five daily readings, one of them sold out."""
        self.store = SQLiteObservationStore(db_path=Path(":memory:"))
        values = [
            Price("50.00"), Price("48.00"), SOLD_OUT,
            Price("52.50"), Price("47.25"),
        ]
        for obs in _series("Widget", values):
            self.store.append("Widget", obs)


class TestSplitSeries(unittest.TestCase):
    """Numeric points and sold-out instants are separated."""

    def test_split(self) -> None:
        """Sold-out readings never become numeric points."""
        observations = _series("Widget", [Price("1.50"), SOLD_OUT, Price("2")])
        points, sold_out = split_series(observations)
        self.assertEqual(points, [(T0, 1.5), (T0 + timedelta(days=2), 2.0)])
        self.assertEqual(sold_out, [T0 + timedelta(days=1)])


class TestBuildChart(unittest.TestCase):
    """Figure construction."""

    def test_sold_out_trace_added(self) -> None:
        """A second trace marks sold-out instants."""
        fig = build_chart(
            _series("Widget", [Price("10"), SOLD_OUT, Price("12")]),
            "Widget",
        )
        names = [trace.name for trace in fig.data]
        self.assertEqual(names, ["Widget", "Sold Out"])

    def test_no_sold_out_trace_when_always_priced(self) -> None:
        """Only the price line is drawn when nothing sold out."""
        fig = build_chart(
            _series("Widget", [Price("10"), Price("12")]), "Widget",
        )
        self.assertEqual(len(fig.data), 1)


class TestExportPriceChart(_StoreMixin, unittest.TestCase):
    """Tests for single-product chart export."""

    def setUp(self) -> None:
        """Set up test fixtures."""
        self._setup_store()

    def tearDown(self) -> None:
        """Clean up."""
        self.store.close()

    @patch("price_tracker.storage.chart_exporter.webbrowser")
    def test_generates_html_file(self, mock_wb: MagicMock) -> None:
        """Export should create an HTML file."""
        with tempfile.TemporaryDirectory() as tmp:
            result = export_price_chart(
                "Widget", self.store,
                open_browser=False, charts_dir=Path(tmp),
            )
            self.assertIsNotNone(result)
            assert result is not None
            self.assertTrue(result.exists())
            self.assertEqual(result.suffix, ".html")
            self.assertIn("plotly", result.read_text().lower())
        mock_wb.open.assert_not_called()

    @patch("price_tracker.storage.chart_exporter.webbrowser")
    def test_opens_browser(self, mock_wb: MagicMock) -> None:
        """open_browser=True hands the file URI to webbrowser."""
        with tempfile.TemporaryDirectory() as tmp:
            result = export_price_chart(
                "Widget", self.store, charts_dir=Path(tmp),
            )
            assert result is not None
            mock_wb.open.assert_called_once_with(result.as_uri())

    def test_default_dir_from_settings(self) -> None:
        """Without charts_dir the configured CHARTS_DIR is used."""
        from price_tracker.config.settings import Settings

        result = export_price_chart(
            "Widget", self.store, open_browser=False,
        )
        assert result is not None
        self.assertEqual(result.parent, Settings.CHARTS_DIR)

    def test_returns_none_for_insufficient_data(self) -> None:
        """Export should return None with < 2 numeric prices."""
        self.store.append(
            "Single", PriceObservation("Single", T0, Price("10.00")),
        )
        self.store.append(
            "Single",
            PriceObservation("Single", T0 + timedelta(days=1), SOLD_OUT),
        )
        result = export_price_chart("Single", self.store, open_browser=False)
        self.assertIsNone(result)

    def test_returns_none_for_unknown_product(self) -> None:
        """Unknown products have nothing to chart."""
        self.assertIsNone(
            export_price_chart("Nope", self.store, open_browser=False)
        )


if __name__ == "__main__":
    unittest.main()
