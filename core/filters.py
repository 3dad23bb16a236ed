from __future__ import annotations

import calendar
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple


DEFAULT_PACKAGE_GOALS: Tuple[Tuple[str, int], ...] = (
    ("Super Mãe", 35),
    ("Mamãe Coruja", 60),
    ("A melhor mãe do mundo", 5),
)


@dataclass(frozen=True)
class Goals:
    orders: int = 120
    extra_photos: int = 200
    revenue: float = 35935.0
    sessions: int = 100
    extra_photos_per_order: float = 1.7
    by_package: Tuple[Tuple[str, int], ...] = DEFAULT_PACKAGE_GOALS


@dataclass(frozen=True)
class CampaignSettings:
    name: str = "Dia das Mães"
    start_month: int = 2
    start_day: int = 1
    target_month: int = 5
    target_day: int = 8
    compare_years: int = 2
    peak_days_top_n: int = 5
    forecast_window_days: int = 7
    ruler_offsets: Tuple[int, ...] = (-3, -2, -1, 0, 1, 2, 3)
    goals: Goals = field(default_factory=Goals)


def _as_int(value: object, default: int, *, lo: int, hi: int) -> int:
    try:
        out = int(value)  # type: ignore[arg-type]
    except Exception:
        return default
    return max(lo, min(hi, out))


def _as_float(value: object, default: float) -> float:
    try:
        out = float(value)  # type: ignore[arg-type]
    except Exception:
        return default
    return out if out >= 0 else default


def _package_goals(raw: Optional[Dict[str, object]]) -> Tuple[Tuple[str, int], ...]:
    if not raw:
        return DEFAULT_PACKAGE_GOALS
    out = []
    for name, target in raw.items():
        try:
            out.append((str(name), max(0, int(target))))  # type: ignore[arg-type]
        except Exception:
            continue
    return tuple(out) or DEFAULT_PACKAGE_GOALS


def normalize_settings(raw: Optional[dict] = None) -> CampaignSettings:
    raw = raw or {}
    defaults = CampaignSettings()

    name = str(raw.get("name") or defaults.name).strip() or defaults.name
    start_month = _as_int(raw.get("start_month", defaults.start_month), defaults.start_month, lo=1, hi=12)
    start_day = _as_int(raw.get("start_day", defaults.start_day), defaults.start_day, lo=1, hi=31)
    target_month = _as_int(raw.get("target_month", defaults.target_month), defaults.target_month, lo=1, hi=12)
    target_day = _as_int(raw.get("target_day", defaults.target_day), defaults.target_day, lo=1, hi=31)
    # campaign dates must exist every year
    start_day = min(start_day, calendar.monthrange(2023, start_month)[1])
    target_day = min(target_day, calendar.monthrange(2023, target_month)[1])
    compare_years = _as_int(raw.get("compare_years", defaults.compare_years), defaults.compare_years, lo=0, hi=10)
    top_n = _as_int(raw.get("peak_days_top_n", defaults.peak_days_top_n), defaults.peak_days_top_n, lo=1, hi=50)
    window = _as_int(
        raw.get("forecast_window_days", defaults.forecast_window_days), defaults.forecast_window_days, lo=1, hi=60
    )

    offsets = raw.get("ruler_offsets")
    ruler_offsets = defaults.ruler_offsets
    if offsets:
        parsed = []
        for v in offsets:
            try:
                parsed.append(int(v))
            except Exception:
                continue
        ruler_offsets = tuple(parsed) or defaults.ruler_offsets

    g = raw.get("goals") or {}
    base = defaults.goals
    goals = Goals(
        orders=_as_int(g.get("orders", base.orders), base.orders, lo=0, hi=1_000_000),
        extra_photos=_as_int(g.get("extra_photos", base.extra_photos), base.extra_photos, lo=0, hi=1_000_000),
        revenue=_as_float(g.get("revenue", base.revenue), base.revenue),
        sessions=_as_int(g.get("sessions", base.sessions), base.sessions, lo=0, hi=1_000_000),
        extra_photos_per_order=_as_float(
            g.get("extra_photos_per_order", base.extra_photos_per_order), base.extra_photos_per_order
        ),
        by_package=_package_goals(g.get("by_package")),
    )

    return CampaignSettings(
        name=name,
        start_month=start_month,
        start_day=start_day,
        target_month=target_month,
        target_day=target_day,
        compare_years=compare_years,
        peak_days_top_n=top_n,
        forecast_window_days=window,
        ruler_offsets=ruler_offsets,
        goals=goals,
    )
