from __future__ import annotations

import calendar
from datetime import date, timedelta
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from core.data import OrdersLike, orders_to_frame, round_half_up, round_int
from core.models import SeriesPoint


# (label, lower, upper); upper None means open-ended
LEAD_TIME_BUCKETS: Tuple[Tuple[str, int, Optional[int]], ...] = (
    ("0–3", 0, 3),
    ("4–7", 4, 7),
    ("8–14", 8, 14),
    ("15–30", 15, 30),
    ("31+", 31, None),
)


def align_to_year(d: date, year: int) -> date:
    """Same month/day in another year; Feb 29 becomes Feb 28 in non-leap years."""
    if d.month == 2 and d.day == 29 and not calendar.isleap(year):
        return date(year, 2, 28)
    return date(year, d.month, d.day)


# ---------------- Filters ----------------
def filter_by_year(orders: OrdersLike, year: int) -> pd.DataFrame:
    df = orders_to_frame(orders)
    return df[df["year"] == int(year)]


def filter_by_date_range(orders: OrdersLike, start: date, end: date) -> pd.DataFrame:
    df = orders_to_frame(orders)
    days = df["created_at"].dt.normalize()
    return df[(days >= pd.Timestamp(start)) & (days <= pd.Timestamp(end))]


def equivalent_range(start: date, end: date, target_year: int) -> Tuple[date, date]:
    return align_to_year(start, target_year), align_to_year(end, target_year)


def campaign_slice(orders: OrdersLike, year: int, today: date, start_month: int, start_day: int) -> pd.DataFrame:
    """Orders of `year` from the campaign start up to today's month/day in that year."""
    start = date(year, start_month, start_day)
    return filter_by_date_range(filter_by_year(orders, year), start, align_to_year(today, year))


# ---------------- Aggregations ----------------
def _daily_totals(df: pd.DataFrame, metric: str = "orders") -> Dict[str, float]:
    if metric not in ("orders", "revenue"):
        raise ValueError(f"Unknown metric '{metric}'")
    if df.empty:
        return {}
    keys = df["created_at"].dt.strftime("%Y-%m-%d")
    if metric == "revenue":
        grouped = df["total_amount"].groupby(keys).sum()
        return {k: float(v) for k, v in grouped.items()}
    grouped = keys.value_counts()
    return {k: int(v) for k, v in grouped.items()}


def count_by_day(orders: OrdersLike) -> Dict[str, int]:
    counts = _daily_totals(orders_to_frame(orders))
    return {k: int(counts[k]) for k in sorted(counts)}


def build_day_series(
    orders: OrdersLike,
    start: date,
    end: date,
    years: Sequence[int],
    *,
    metric: str = "orders",
) -> List[SeriesPoint]:
    """One row per day of [start, end], with each year's value on the same month/day.

    Rows are labelled dd/MM. On a leap-year axis the 29/02 row counts zero for
    non-leap years. On a non-leap axis a leap year's Feb 29 folds into the 28/02
    row when the range runs past Feb 28, following `align_to_year`.
    """
    df = orders_to_frame(orders)
    per_year = {int(y): _daily_totals(filter_by_year(df, y), metric) for y in years}
    zero: float = 0.0 if metric == "revenue" else 0

    last_day = pd.Timestamp(end).normalize()
    points: List[SeriesPoint] = []
    for day in pd.date_range(pd.Timestamp(start), last_day, freq="D"):
        month_day = day.strftime("%m-%d")
        fold_leap_day = month_day == "02-28" and not calendar.isleap(day.year) and day < last_day
        values = []
        for y in per_year:
            value = per_year[y].get(f"{y}-{month_day}", zero)
            if fold_leap_day and calendar.isleap(y):
                value += per_year[y].get(f"{y}-02-29", zero)
            values.append((y, value))
        points.append(SeriesPoint(label=day.strftime("%d/%m"), values=tuple(values)))
    return points


def accumulate_series(points: Iterable[SeriesPoint]) -> List[SeriesPoint]:
    running: Dict[int, float] = {}
    out: List[SeriesPoint] = []
    for p in points:
        values = []
        for year, value in p.values:
            running[year] = running.get(year, 0) + (value or 0)
            values.append((year, running[year]))
        out.append(SeriesPoint(label=p.label, values=tuple(values)))
    return out


def package_distribution(orders: OrdersLike) -> List[Dict[str, Any]]:
    df = orders_to_frame(orders)
    if df.empty:
        return []
    grouped = df.groupby("package_name")["total_amount"].agg(["count", "sum"]).sort_index()
    return [{"name": str(name), "count": int(r["count"]), "revenue": float(r["sum"])} for name, r in grouped.iterrows()]


def payment_distribution(orders: OrdersLike) -> List[Dict[str, Any]]:
    df = orders_to_frame(orders)
    if df.empty:
        return []
    grouped = df.groupby("entry_payment_method").size().sort_index()
    return [{"method": str(method), "count": int(count)} for method, count in grouped.items()]


def lead_time_days(orders: OrdersLike) -> pd.Series:
    """Whole days between creation and session, truncated toward zero; orders without a session are dropped."""
    df = orders_to_frame(orders)
    booked = df[df["session_at"].notna()]
    if booked.empty:
        return pd.Series(dtype="int64")
    delta = (booked["session_at"] - booked["created_at"]) / pd.Timedelta(days=1)
    return pd.Series(np.trunc(delta.to_numpy(dtype=float)).astype("int64"), index=booked.index)


def lead_time_stats(orders: OrdersLike) -> Dict[str, Any]:
    diffs = sorted(int(d) for d in lead_time_days(orders))
    if not diffs:
        return {"avg": 0, "median": 0, "buckets": []}

    # half-up rounds a negative mean away from zero (-2.5 -> -3)
    avg = round_int(sum(diffs) / len(diffs))
    # upper median for even lengths
    median = diffs[len(diffs) // 2]

    buckets = []
    for label, lo, hi in LEAD_TIME_BUCKETS:
        count = sum(1 for d in diffs if d >= lo and (hi is None or d <= hi))
        buckets.append({"range": label, "count": count})
    return {"avg": avg, "median": median, "buckets": buckets}


def sum_revenue(orders: OrdersLike) -> float:
    df = orders_to_frame(orders)
    return float(df["total_amount"].sum()) if not df.empty else 0.0


def avg_ticket(orders: OrdersLike) -> int:
    df = orders_to_frame(orders)
    if df.empty:
        return 0
    return round_int(sum_revenue(df) / len(df))


def peak_days(orders: OrdersLike, year: int, *, top_n: int = 5, min_count: int = 1) -> List[Dict[str, Any]]:
    df = filter_by_year(orders, year)
    if df.empty:
        return []
    counts = df["created_at"].dt.normalize().value_counts()
    ranked = sorted(((ts, int(c)) for ts, c in counts.items() if c >= min_count), key=lambda kv: (-kv[1], kv[0]))
    return [
        {"date": ts.strftime("%d/%m"), "full_date": ts.strftime("%Y-%m-%d"), "count": c} for ts, c in ranked[:top_n]
    ]


def window_count(orders: OrdersLike, year: int, today: date, days: int = 7) -> int:
    """Orders of `year` in the `days`-day window starting at today's month/day."""
    start = align_to_year(today, year)
    end = start + timedelta(days=days - 1)
    return int(len(filter_by_date_range(filter_by_year(orders, year), start, end)))


def _ruler_metrics(df: pd.DataFrame, year: int, day: date, start_month: int, start_day: int) -> Dict[str, Any]:
    target = align_to_year(day, year)
    year_orders = filter_by_year(df, year)
    daily = filter_by_date_range(year_orders, target, target)
    packages = daily.groupby("package_name").size().sort_index() if not daily.empty else pd.Series(dtype="int64")
    accum = filter_by_date_range(year_orders, date(year, start_month, start_day), target)
    return {
        "daily": int(len(daily)),
        "accum_total": int(len(accum)),
        "accum_revenue": sum_revenue(accum),
        "packages": {str(k): int(v) for k, v in packages.items()},
    }


def today_ruler(
    orders: OrdersLike,
    today: date,
    years: Sequence[int],
    *,
    offsets: Sequence[int] = (-3, -2, -1, 0, 1, 2, 3),
    start_month: int = 2,
    start_day: int = 1,
) -> List[Dict[str, Any]]:
    """Daily and campaign-to-date figures around today, per year.

    Future offsets have no figures for today's own year.
    """
    df = orders_to_frame(orders)
    rows = []
    for offset in offsets:
        day = today + timedelta(days=offset)
        per_year = []
        for year in years:
            if year == today.year and offset > 0:
                per_year.append({"year": int(year), "metrics": None})
            else:
                per_year.append({"year": int(year), "metrics": _ruler_metrics(df, year, day, start_month, start_day)})
        rows.append(
            {
                "offset": offset,
                "label": "Today" if offset == 0 else (f"+{offset}" if offset > 0 else str(offset)),
                "date": day.strftime("%d/%m"),
                "years": per_year,
            }
        )
    return rows


def linear_projection(
    orders: OrdersLike,
    today: date,
    *,
    start_month: int = 2,
    start_day: int = 1,
    campaign_days: int = 120,
    compare_year: Optional[int] = None,
) -> Dict[str, Any]:
    """Project the current campaign total from its average daily pace so far."""
    year = today.year
    compare_year = compare_year if compare_year is not None else year - 1
    current = campaign_slice(orders, year, today, start_month, start_day)
    elapsed = (today - date(year, start_month, start_day)).days + 1
    avg_daily = len(current) / max(elapsed, 1)
    projected = round_int(avg_daily * campaign_days)
    compare_total = int(len(filter_by_year(orders, compare_year)))
    diff_pct = round_int((projected - compare_total) / compare_total * 100) if compare_total else None
    return {
        "year": year,
        "avg_daily": round_half_up(avg_daily, 1),
        "projected": projected,
        "compare_year": compare_year,
        "compare_total": compare_total,
        "diff_pct": diff_pct,
    }
