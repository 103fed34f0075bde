# price_tracker/storage/chart_exporter.py

"""Generate interactive Plotly HTML charts from price history."""

import importlib
import logging
import webbrowser
from datetime import datetime
from pathlib import Path
from types import ModuleType
from typing import Any

from price_tracker.config.settings import Settings
from price_tracker.models.observation import Price, PriceObservation
from price_tracker.storage.observation_store import ObservationStore

logger = logging.getLogger("price_tracker.chart")


def _get_plotly_go() -> ModuleType:
    """Import plotly.graph_objects lazily."""
    return importlib.import_module("plotly.graph_objects")


def _ensure_charts_dir(charts_dir: Path | None = None) -> Path:
    """Create charts directory if it doesn't exist."""
    directory = charts_dir or Settings.CHARTS_DIR
    directory.mkdir(parents=True, exist_ok=True)
    return directory


def split_series(
    observations: list[PriceObservation],
) -> tuple[list[tuple[datetime, float]], list[datetime]]:
    """Separate numeric points from sold-out instants."""
    points: list[tuple[datetime, float]] = []
    sold_out: list[datetime] = []
    for o in observations:
        if isinstance(o.value, Price):
            points.append((o.observed_at, float(o.value.as_decimal())))
        else:
            sold_out.append(o.observed_at)
    return points, sold_out


def build_chart(
    observations: list[PriceObservation],
    title: str,
) -> Any:
    """Build a Plotly line chart for one product."""
    go = _get_plotly_go()
    points, sold_out = split_series(observations)
    dates = [p[0] for p in points]
    prices = [p[1] for p in points]

    fig: Any = go.Figure()
    fig.add_trace(go.Scatter(
        x=dates,
        y=prices,
        mode="lines+markers",
        name=title[:50],
        hovertemplate=(
            "%{x|%Y-%m-%d %H:%M}<br>"
            "Price: %{y:.2f}"
            "<extra></extra>"
        ),
    ))
    if sold_out:
        fig.add_trace(go.Scatter(
            x=sold_out,
            y=[min(prices)] * len(sold_out),
            mode="markers",
            name="Sold Out",
            marker={"symbol": "x", "color": "crimson"},
            hovertemplate="%{x|%Y-%m-%d %H:%M}<br>Sold Out<extra></extra>",
        ))

    min_price = min(prices)
    max_price = max(prices)
    fig.add_annotation(
        x=dates[prices.index(min_price)], y=min_price,
        text=f"Min: {min_price:.2f}",
        showarrow=True, arrowhead=2,
    )
    fig.add_annotation(
        x=dates[prices.index(max_price)], y=max_price,
        text=f"Max: {max_price:.2f}",
        showarrow=True, arrowhead=2,
    )

    fig.update_layout(
        title=f"Price History: {title[:60]}",
        xaxis_title="Date (UTC)",
        yaxis_title="Price",
        hovermode="x unified",
        template="plotly_white",
    )
    return fig


def export_price_chart(
    product_id: str,
    store: ObservationStore,
    open_browser: bool = True,
    charts_dir: Path | None = None,
) -> Path | None:
    """Export a single product's price chart as HTML.

    Returns ``None`` when fewer than two numeric prices are stored.
    """
    observations = store.history(product_id)
    points, _ = split_series(observations)
    if len(points) < 2:
        logger.warning(
            "Not enough data points for chart: %s", product_id,
        )
        return None

    fig = build_chart(observations, product_id)

    directory = _ensure_charts_dir(charts_dir)
    slug = product_id[:30].replace(" ", "_").replace("/", "_")
    stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    filepath = directory / f"{slug}_{stamp}.html"
    fig.write_html(str(filepath))
    logger.info("Chart saved to %s", filepath)

    if open_browser:
        webbrowser.open(filepath.as_uri())

    return filepath
