"""Tests for dashboard snapshot assembly."""

import json
from datetime import date

import pytest

from core.dashboard import (
    build_dashboard_snapshot,
    goal_entry,
    installments_label,
    package_catalog,
    pace_per_day,
    progress_pct,
)
from core.filters import CampaignSettings, normalize_settings

TODAY = date(2026, 2, 23)


@pytest.fixture(scope="module")
def snapshot(synthetic_orders, pricing_table, customers):
    return build_dashboard_snapshot(synthetic_orders, pricing_table, TODAY, customers=customers)


def _by_year(rows):
    return {r["year"]: r["value"] for r in rows}


class TestGoalMath:
    """Tests for goal progress and pace."""

    def test_progress_rounds_half_up_and_caps(self):
        assert progress_pct(15, 120) == 13
        assert progress_pct(300, 120) == 100
        assert progress_pct(0, 120) == 0
        assert progress_pct(5, 0) == 0

    def test_pace(self):
        assert pace_per_day(105, 74) == 2
        assert pace_per_day(74, 74) == 1
        assert pace_per_day(10, 0) == 0
        assert pace_per_day(10, -3) == 0

    def test_goal_entry(self):
        assert goal_entry(100, 120, 10) == {
            "target": 100,
            "current": 120,
            "progress_pct": 100,
            "remaining": 0,
            "pace_per_day": 0,
        }

    def test_installments_label(self):
        assert installments_label(1, 98) == "1x R$ 98,00"
        assert installments_label(3, 110) == "até 3x R$ 110,00"


class TestSnapshot:
    """Tests for the snapshot built from the synthetic campaign data."""

    def test_campaign_window(self, snapshot):
        assert snapshot["today"] == "2026-02-23"
        assert snapshot["campaign"] == {
            "name": "Dia das Mães 2026",
            "start_date": "2026-02-01",
            "target_date": "2026-05-08",
            "days_left": 74,
            "active_days": 23,
        }
        assert snapshot["years"] == [2024, 2025, 2026]

    def test_kpis_compare_equivalent_elapsed_time(self, snapshot):
        orders = _by_year(snapshot["kpis"]["orders"])
        assert orders == {2024: 0, 2025: 12, 2026: 15}
        assert snapshot["kpis"]["revenue"] == 6277.0
        assert snapshot["kpis"]["avg_ticket"] == 418

    def test_packages_from_current_price_table(self, snapshot):
        names = [p["name"] for p in snapshot["packages"]]
        assert names == ["Mamãe Coruja", "Super Mãe", "A melhor mãe do mundo"]
        coruja = snapshot["packages"][0]
        assert coruja["price"] == 196
        assert coruja["installments"] == "1x R$ 98,00"
        assert _by_year(coruja["sold"])[2026] == 7
        assert coruja["revenue"] == 7 * 196.0

    def test_goals(self, snapshot):
        goals = snapshot["goals"]
        assert goals["orders"]["progress_pct"] == 13
        assert goals["orders"]["remaining"] == 105
        assert goals["orders"]["pace_per_day"] == 2
        assert goals["extra_photos"]["current"] == 26
        by_package = {g["name"]: g for g in goals["by_package"]}
        assert by_package["A melhor mãe do mundo"]["current"] == 3
        assert by_package["A melhor mãe do mundo"]["progress_pct"] == 60
        assert _by_year(goals["campaign_comparison"]) == {2024: 0, 2025: 12}

    def test_day_series_covers_campaign_to_today(self, snapshot):
        series = snapshot["charts"]["day_series"]
        assert len(series) == 23
        assert series[0]["label"] == "01/02"
        assert series[-1]["label"] == "23/02"
        total_2026 = sum(v["value"] for p in series for v in p["values"] if v["year"] == 2026)
        assert total_2026 == 15

    def test_lead_time_buckets_are_zero_filled(self, snapshot):
        buckets = snapshot["charts"]["lead_time"]["buckets"]
        assert [b["label"] for b in buckets] == ["0–3", "4–7", "8–14", "15–30", "31+"]
        assert all(len(b["values"]) == 2 for b in buckets)

    def test_ruler_hides_future_current_year(self, snapshot):
        ruler = snapshot["ruler"]
        assert len(ruler) == 7
        for row in ruler:
            current = next(y for y in row["years"] if y["year"] == 2026)
            assert (current["metrics"] is None) == (row["offset"] > 0)

    def test_recurrent_missing(self, snapshot, synthetic_orders):
        ids_2026 = {o.customer_id for o in synthetic_orders if o.year == 2026}
        missing = snapshot["recurrent_missing"]
        assert missing
        assert not any(c["id"] in ids_2026 for c in missing)

    def test_idempotent(self, synthetic_orders, pricing_table, customers, snapshot):
        again = build_dashboard_snapshot(synthetic_orders, pricing_table, TODAY, customers=customers)
        assert json.dumps(again, sort_keys=True) == json.dumps(snapshot, sort_keys=True)

    def test_after_target_date(self, synthetic_orders, pricing_table):
        snap = build_dashboard_snapshot(synthetic_orders, pricing_table, date(2026, 6, 1))
        assert snap["campaign"]["days_left"] == 0
        assert snap["goals"]["orders"]["pace_per_day"] == 0
        assert "recurrent_missing" not in snap

    def test_custom_settings(self, synthetic_orders, pricing_table):
        settings = normalize_settings({"start_month": 2, "start_day": 15, "compare_years": 1, "goals": {"orders": 10}})
        snap = build_dashboard_snapshot(synthetic_orders, pricing_table, TODAY, settings=settings)
        assert snap["years"] == [2025, 2026]
        assert len(snap["charts"]["day_series"]) == 9
        assert snap["goals"]["orders"]["target"] == 10

    def test_leap_day_order_in_kpis_and_day_series(self, make_order, pricing_table):
        orders = [make_order("2024-02-29T10:00:00"), make_order("2025-02-10T10:00:00")]
        snap = build_dashboard_snapshot(orders, pricing_table, date(2025, 3, 10))

        assert _by_year(snap["kpis"]["orders"]) == {2023: 0, 2024: 1, 2025: 1}
        series = snap["charts"]["day_series"]
        assert sum(v["value"] for p in series for v in p["values"] if v["year"] == 2024) == 1
        feb_28 = next(p for p in series if p["label"] == "28/02")
        assert {v["year"]: v["value"] for v in feb_28["values"]}[2024] == 1

    def test_empty_orders(self, pricing_table):
        snap = build_dashboard_snapshot([], pricing_table, TODAY, settings=CampaignSettings())
        assert _by_year(snap["kpis"]["orders"]) == {2024: 0, 2025: 0, 2026: 0}
        assert snap["kpis"]["lead_time_median"] == 0
        assert snap["charts"]["package_comparison"] == []


class TestPackageCatalog:
    def test_skips_packages_without_current_price(self, small_pricing):
        assert package_catalog(small_pricing, 2026) == []
        assert package_catalog(small_pricing, 2025)[0]["installments"] == "até 2x R$ 35,00"
