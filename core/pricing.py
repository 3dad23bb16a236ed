"""Package price history: year-over-year deltas, CAGR and the adjustment report."""

from __future__ import annotations

import math
from dataclasses import asdict
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

import pandas as pd

from core.models import ExtraPhotoYearPrice, PackageYearPrice, PricingTable


EXPORT_COLUMNS = [
    "Pacote",
    "Ano",
    "Total",
    "Entrada",
    "Parcelas",
    "Saldo",
    "Delta Total R$",
    "Delta Total %",
    "Delta Entrada R$",
    "Delta Entrada %",
]
EXTRA_PHOTO_LABEL = "Foto Extra"
INTERVALS = {"all": None, "last2": 2, "last3": 3}


def _delta(current: float, previous: float) -> Dict[str, float]:
    rs = current - previous
    pct = (rs / previous) * 100 if previous > 0 else 0
    return {"rs": rs, "pct": pct}


def compute_yearly_deltas(series: Iterable[PackageYearPrice]) -> List[Dict[str, Any]]:
    ordered = sorted(series, key=lambda p: p.year)
    out: List[Dict[str, Any]] = []
    for i, current in enumerate(ordered):
        calculated_total = current.entry + current.installments_count * current.installment_value
        row = asdict(current)
        row.update(
            {
                "balance": current.total - current.entry,
                "calculated_total": calculated_total,
                "needs_adjustment_badge": calculated_total != current.total,
                "delta_total_rs": None,
                "delta_total_pct": None,
                "delta_entry_rs": None,
                "delta_entry_pct": None,
            }
        )
        if i > 0:
            previous = ordered[i - 1]
            total = _delta(current.total, previous.total)
            entry = _delta(current.entry, previous.entry)
            row.update(
                {
                    "delta_total_rs": total["rs"],
                    "delta_total_pct": total["pct"],
                    "delta_entry_rs": entry["rs"],
                    "delta_entry_pct": entry["pct"],
                }
            )
        out.append(row)
    return out


def compute_extra_photo_deltas(series: Iterable[ExtraPhotoYearPrice]) -> List[Dict[str, Any]]:
    ordered = sorted(series, key=lambda p: p.year)
    out: List[Dict[str, Any]] = []
    for i, current in enumerate(ordered):
        row = asdict(current)
        row.update({"delta_unit_rs": None, "delta_unit_pct": None})
        if i > 0:
            unit = _delta(current.unit_price, ordered[i - 1].unit_price)
            row.update({"delta_unit_rs": unit["rs"], "delta_unit_pct": unit["pct"]})
        out.append(row)
    return out


def compute_cagr(start_value: float, end_value: float, years: float) -> float:
    if years <= 0 or start_value <= 0 or end_value < 0:
        return 0
    return (math.pow(end_value / start_value, 1 / years) - 1) * 100


def build_aligned_years(*series: Iterable[Any]) -> List[int]:
    years = set()
    for s in series:
        for item in s:
            years.add(int(item["year"] if isinstance(item, dict) else item.year))
    return sorted(years)


def _year_window(years: Sequence[int], interval: str) -> Optional[range]:
    if interval not in INTERVALS:
        raise ValueError(f"Unknown interval '{interval}'")
    if not years:
        return None
    span = INTERVALS[interval]
    max_year = years[-1]
    min_year = years[0] if span is None else max_year - span + 1
    return range(min_year, max_year + 1)


def _computed_rows(
    pricing: PricingTable, interval: str
) -> Tuple[Dict[str, List[Dict[str, Any]]], List[Dict[str, Any]]]:
    """Delta rows over the full history, then cut to the interval's years."""
    packages = {name: compute_yearly_deltas(rows) for name, rows in pricing.packages.items()}
    extra = compute_extra_photo_deltas(pricing.extra_photo)

    window = _year_window(build_aligned_years(*packages.values(), extra), interval)
    if window is not None:
        packages = {name: [r for r in rows if r["year"] in window] for name, rows in packages.items()}
        extra = [r for r in extra if r["year"] in window]
    return packages, extra


def pricing_overview(pricing: PricingTable, *, interval: str = "all") -> Dict[str, Any]:
    """Computed price series per package plus the highlights shown next to them.

    CAGR is reported for series with at least three points, over len - 1 steps.
    """
    packages, extra = _computed_rows(pricing, interval)

    max_pct: Dict[str, Any] = {"package": None, "year": None, "value": 0}
    max_rs: Dict[str, Any] = {"package": None, "year": None, "value": 0}
    no_adjustment = []
    cagr: Dict[str, float] = {}
    for name, rows in packages.items():
        if len(rows) >= 3:
            cagr[name] = compute_cagr(rows[0]["total"], rows[-1]["total"], len(rows) - 1)
        for r in rows:
            if r["delta_total_pct"] is not None and r["delta_total_pct"] > max_pct["value"]:
                max_pct = {"package": name, "year": r["year"], "value": r["delta_total_pct"]}
            if r["delta_total_rs"] is not None and r["delta_total_rs"] > max_rs["value"]:
                max_rs = {"package": name, "year": r["year"], "value": r["delta_total_rs"]}
            if r["delta_total_rs"] == 0:
                no_adjustment.append({"package": name, "year": r["year"]})

    extra_variation = None
    if len(extra) >= 2 and extra[-1]["delta_unit_rs"] is not None:
        extra_variation = {"rs": extra[-1]["delta_unit_rs"], "pct": extra[-1]["delta_unit_pct"]}

    return {
        "interval": interval,
        "years": build_aligned_years(*packages.values(), extra),
        "packages": [{"name": name, "series": rows} for name, rows in packages.items()],
        "extra_photo": extra,
        "summary": {
            "max_increase_pct": max_pct,
            "max_increase_rs": max_rs,
            "no_adjustment_years": no_adjustment,
            "cagr": cagr,
            "extra_photo_variation": extra_variation,
        },
    }


def _cell(value: Optional[float]) -> str:
    # Missing and zero deltas both render empty.
    if value is None or value == 0:
        return ""
    return _num(value)


def _num(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


def pricing_report_frame(pricing: PricingTable, *, interval: str = "all") -> pd.DataFrame:
    packages, extra = _computed_rows(pricing, interval)
    rows: List[List[str]] = []
    for name, series in packages.items():
        for d in series:
            rows.append(
                [
                    name,
                    str(d["year"]),
                    _num(d["total"]),
                    _num(d["entry"]),
                    f"{d['installments_count']}x {_num(d['installment_value'])}",
                    _num(d["balance"]),
                    _cell(d["delta_total_rs"]),
                    _cell(d["delta_total_pct"]),
                    _cell(d["delta_entry_rs"]),
                    _cell(d["delta_entry_pct"]),
                ]
            )
    for d in extra:
        rows.append(
            [
                EXTRA_PHOTO_LABEL,
                str(d["year"]),
                _num(d["unit_price"]),
                "-",
                "",
                "",
                _cell(d["delta_unit_rs"]),
                _cell(d["delta_unit_pct"]),
                "",
                "",
            ]
        )
    return pd.DataFrame(rows, columns=EXPORT_COLUMNS)


def export_pricing_csv(pricing: PricingTable, *, interval: str = "all") -> str:
    return pricing_report_frame(pricing, interval=interval).to_csv(index=False, lineterminator="\n")
