from __future__ import annotations

from typing import Any, Dict, Iterable, List

import altair as alt
import pandas as pd

from core.models import SeriesPoint

alt.data_transformers.disable_max_rows()


def to_vega_spec(chart: alt.Chart) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def series_to_frame(points: Iterable[SeriesPoint]) -> pd.DataFrame:
    """Long frame (label, year, value, position) from tagged series rows."""
    rows: List[Dict[str, Any]] = []
    for position, p in enumerate(points):
        for year, value in p.values:
            rows.append({"position": position, "label": p.label, "year": str(year), "value": value})
    return pd.DataFrame(rows, columns=["position", "label", "year", "value"])


def day_series_chart(points: Iterable[SeriesPoint], *, metric: str = "orders") -> Dict[str, Any]:
    long_df = series_to_frame(points)
    y_title = "Revenue" if metric == "revenue" else "Orders"
    hover = alt.selection_point(fields=["year"], on="mouseover", empty="all")
    line = (
        alt.Chart(long_df)
        .mark_line(point={"filled": True, "size": 50})
        .encode(
            x=alt.X("label:O", title="Day", sort=alt.EncodingSortField(field="position"), axis=alt.Axis(grid=False)),
            y=alt.Y("value:Q", title=y_title, axis=alt.Axis(gridDash=[4, 4], domain=False, ticks=False)),
            color=alt.Color("year:N", title="Year"),
            opacity=alt.condition(hover, alt.value(1), alt.value(0.2)),
            tooltip=["year", "label", alt.Tooltip("value:Q", title=y_title, format=",")],
        )
        .add_params(hover)
        .properties(height=260)
    )
    return to_vega_spec(line)


def pricing_trend_chart(overview: Dict[str, Any]) -> Dict[str, Any]:
    """Total price per package and year, from `pricing_overview` output."""
    rows = [
        {"package": pkg["name"], "year": str(r["year"]), "total": r["total"], "needs_adjustment": r["needs_adjustment_badge"]}
        for pkg in overview.get("packages", [])
        for r in pkg["series"]
    ]
    df = pd.DataFrame(rows, columns=["package", "year", "total", "needs_adjustment"])
    hover = alt.selection_point(fields=["package"], on="mouseover", empty="all")
    line = (
        alt.Chart(df)
        .mark_line(point={"filled": True, "size": 60})
        .encode(
            x=alt.X("year:O", title="Year", axis=alt.Axis(grid=False)),
            y=alt.Y("total:Q", title="Total price", axis=alt.Axis(format=",.0f", gridDash=[4, 4], domain=False, ticks=False)),
            color=alt.Color("package:N", title="Package"),
            opacity=alt.condition(hover, alt.value(1), alt.value(0.2)),
            tooltip=["package", "year", alt.Tooltip("total:Q", format=",.2f"), "needs_adjustment"],
        )
        .add_params(hover)
        .properties(height=260)
    )
    return to_vega_spec(line)
