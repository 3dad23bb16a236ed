from __future__ import annotations

import math
from dataclasses import asdict
from datetime import date
from typing import Any, Dict, Iterable, List, Optional

from core.analytics import (
    LEAD_TIME_BUCKETS,
    avg_ticket,
    build_day_series,
    campaign_slice,
    filter_by_year,
    lead_time_stats,
    linear_projection,
    package_distribution,
    payment_distribution,
    peak_days,
    sum_revenue,
    today_ruler,
    window_count,
)
from core.customers import lapsed_customers
from core.data import OrdersLike, format_brl, orders_to_frame, round_int
from core.filters import CampaignSettings
from core.models import Customer, PricingTable, SeriesPoint


def progress_pct(current: float, target: float) -> int:
    if target <= 0:
        return 0
    return min(100, round_int(current / target * 100))


def pace_per_day(remaining: float, days_left: int) -> int:
    if days_left <= 0:
        return 0
    return int(math.ceil(remaining / days_left))


def goal_entry(target: float, current: float, days_left: int) -> Dict[str, Any]:
    remaining = max(0, target - current)
    return {
        "target": target,
        "current": current,
        "progress_pct": progress_pct(current, target),
        "remaining": remaining,
        "pace_per_day": pace_per_day(remaining, days_left),
    }


def installments_label(count: int, value: float) -> str:
    prefix = "até " if count > 1 else ""
    return f"{prefix}{count}x {format_brl(value)}"


def package_catalog(pricing: PricingTable, year: int) -> List[Dict[str, Any]]:
    """Price card for each package that has a row for `year`."""
    out = []
    for name, rows in pricing.packages.items():
        row = next((r for r in rows if r.year == year), None)
        if row is None:
            continue
        out.append(
            {
                "name": name,
                "price": row.total,
                "entry": row.entry,
                "installments": installments_label(row.installments_count, row.installment_value),
            }
        )
    return out


def _per_year(values: Dict[int, Any]) -> List[Dict[str, Any]]:
    return [{"year": y, "value": v} for y, v in values.items()]


def _comparison(rows_by_year: Dict[int, List[Dict[str, Any]]], key: str) -> List[Dict[str, Any]]:
    labels = sorted({r[key] for rows in rows_by_year.values() for r in rows})
    points = []
    for label in labels:
        values = tuple(
            (y, next((r["count"] for r in rows if r[key] == label), 0)) for y, rows in rows_by_year.items()
        )
        points.append(SeriesPoint(label=label, values=values).to_dict())
    return points


def build_dashboard_snapshot(
    orders: OrdersLike,
    pricing: PricingTable,
    today: date,
    *,
    settings: Optional[CampaignSettings] = None,
    customers: Optional[Iterable[Customer]] = None,
) -> Dict[str, Any]:
    """Assemble every dashboard aggregate for the campaign as of `today`.

    Prior years are sliced by month/day, so each year is compared over the
    same elapsed share of its campaign.
    """
    settings = settings or CampaignSettings()
    df = orders_to_frame(orders)
    year = today.year
    prev_year = year - 1
    years = [year - k for k in range(settings.compare_years, -1, -1)]
    prior_years = [y for y in years if y != year]

    campaign_start = date(year, settings.start_month, settings.start_day)
    target_date = date(year, settings.target_month, settings.target_day)
    days_left = max(0, (target_date - today).days)
    active_days = max(0, (today - campaign_start).days + 1)

    slices = {y: campaign_slice(df, y, today, settings.start_month, settings.start_day) for y in years}
    current = slices[year]
    revenue = sum_revenue(current)
    lt_current = lead_time_stats(current)

    kpis = {
        "orders": _per_year({y: int(len(s)) for y, s in slices.items()}),
        "revenue": revenue,
        "avg_ticket": avg_ticket(current),
        "lead_time_median": lt_current["median"],
    }

    packages = []
    for pkg in package_catalog(pricing, year):
        sold = {y: int((s["package_name"] == pkg["name"]).sum()) for y, s in slices.items()}
        pkg_current = current[current["package_name"] == pkg["name"]]
        packages.append({**pkg, "sold": _per_year(sold), "revenue": sum_revenue(pkg_current)})

    g = settings.goals
    order_count = int(len(current))
    goals = {
        "orders": goal_entry(g.orders, order_count, days_left),
        "by_package": [
            {"name": name, **goal_entry(target, int((current["package_name"] == name).sum()), days_left)}
            for name, target in g.by_package
        ],
        "extra_photos": goal_entry(g.extra_photos, round_int(order_count * g.extra_photos_per_order), days_left),
        "revenue": goal_entry(g.revenue, revenue, days_left),
        "sessions": goal_entry(g.sessions, int(current["session_at"].notna().sum()), days_left),
        "campaign_comparison": _per_year({y: int(len(slices[y])) for y in prior_years}),
    }

    insights = {
        "peak_days": [{"year": y, "days": peak_days(df, y, top_n=settings.peak_days_top_n)} for y in prior_years],
        "next_days": _per_year({y: window_count(df, y, today, settings.forecast_window_days) for y in prior_years}),
        "projection": linear_projection(
            df,
            today,
            start_month=settings.start_month,
            start_day=settings.start_day,
            campaign_days=(target_date - campaign_start).days + 1,
            compare_year=prev_year,
        ),
    }

    day_series = [p.to_dict() for p in build_day_series(df, campaign_start, today, years)]
    compared = {prev_year: filter_by_year(df, prev_year), year: filter_by_year(df, year)}
    lt_previous = lead_time_stats(compared[prev_year])
    lt_by_year = {prev_year: lt_previous, year: lt_current}
    lead_time_buckets = [
        SeriesPoint(
            label=label,
            values=tuple(
                (y, next((b["count"] for b in stats["buckets"] if b["range"] == label), 0))
                for y, stats in lt_by_year.items()
            ),
        ).to_dict()
        for label, _, _ in LEAD_TIME_BUCKETS
    ]

    charts = {
        "day_series": day_series,
        "package_comparison": _comparison({y: package_distribution(d) for y, d in compared.items()}, "name"),
        "lead_time": {
            "stats": [{"year": y, "avg": s["avg"], "median": s["median"]} for y, s in lt_by_year.items()],
            "buckets": lead_time_buckets,
        },
        "payment_distribution": _comparison({y: payment_distribution(d) for y, d in compared.items()}, "method"),
    }

    snapshot = {
        "today": today.isoformat(),
        "campaign": {
            "name": f"{settings.name} {year}",
            "start_date": campaign_start.isoformat(),
            "target_date": target_date.isoformat(),
            "days_left": days_left,
            "active_days": active_days,
        },
        "years": years,
        "kpis": kpis,
        "packages": packages,
        "goals": goals,
        "insights": insights,
        "charts": charts,
        "ruler": today_ruler(
            df,
            today,
            years,
            offsets=settings.ruler_offsets,
            start_month=settings.start_month,
            start_day=settings.start_day,
        ),
        "settings": asdict(settings),
    }
    if customers is not None:
        snapshot["recurrent_missing"] = lapsed_customers(df, customers, year)
    return snapshot
