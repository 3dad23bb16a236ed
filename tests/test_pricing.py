"""Tests for price deltas, CAGR, the pricing overview and the CSV export."""

import pytest

from core.models import ExtraPhotoYearPrice, PackageYearPrice, PricingTable
from core.pricing import (
    EXPORT_COLUMNS,
    build_aligned_years,
    compute_cagr,
    compute_extra_photo_deltas,
    compute_yearly_deltas,
    export_pricing_csv,
    pricing_overview,
    pricing_report_frame,
)


def _price(year, total, entry, count=1, value=None):
    return PackageYearPrice(
        year=year, total=total, entry=entry, installments_count=count, installment_value=value if value is not None else total - entry
    )


class TestYearlyDeltas:
    """Tests for year-over-year package deltas."""

    def test_first_year_has_no_deltas(self):
        rows = compute_yearly_deltas([_price(2025, 120, 50), _price(2024, 100, 50)])

        assert [r["year"] for r in rows] == [2024, 2025]
        first, second = rows
        for key in ("delta_total_rs", "delta_total_pct", "delta_entry_rs", "delta_entry_pct"):
            assert first[key] is None
        assert second["delta_total_rs"] == 20
        assert second["delta_total_pct"] == 20
        assert second["delta_entry_rs"] == 0
        assert second["delta_entry_pct"] == 0

    def test_zero_previous_gives_zero_pct(self):
        rows = compute_yearly_deltas([_price(2024, 0, 0, 1, 0), _price(2025, 100, 40)])
        assert rows[1]["delta_total_rs"] == 100
        assert rows[1]["delta_total_pct"] == 0
        assert rows[1]["delta_entry_pct"] == 0

    def test_needs_adjustment_badge(self):
        inconsistent, consistent = compute_yearly_deltas(
            [_price(2024, 200, 50, 3, 40), _price(2025, 170, 50, 3, 40)]
        )
        assert inconsistent["calculated_total"] == 170
        assert inconsistent["needs_adjustment_badge"] is True
        assert consistent["needs_adjustment_badge"] is False

    def test_balance(self):
        (row,) = compute_yearly_deltas([_price(2026, 450, 120, 3, 110)])
        assert row["balance"] == 330
        assert row["installments_count"] == 3

    def test_input_is_not_mutated(self):
        series = [_price(2025, 120, 50), _price(2024, 100, 50)]
        compute_yearly_deltas(series)
        assert [p.year for p in series] == [2025, 2024]

    def test_extra_photo_deltas(self):
        rows = compute_extra_photo_deltas([ExtraPhotoYearPrice(2025, 19), ExtraPhotoYearPrice(2024, 18)])
        assert rows[0]["delta_unit_rs"] is None
        assert rows[0]["delta_unit_pct"] is None
        assert rows[1]["delta_unit_rs"] == 1
        assert rows[1]["delta_unit_pct"] == pytest.approx(100 / 18)


class TestCagr:
    """Tests for compound annual growth rate."""

    def test_two_ten_percent_steps(self):
        assert compute_cagr(100, 121, 2) == pytest.approx(10)

    def test_guards(self):
        assert compute_cagr(100, 121, 0) == 0
        assert compute_cagr(100, 121, -1) == 0
        assert compute_cagr(0, 121, 2) == 0
        assert compute_cagr(-5, 121, 2) == 0
        assert compute_cagr(100, -5, 2) == 0

    def test_decline_is_negative(self):
        assert compute_cagr(100, 81, 2) == pytest.approx(-10)


class TestPricingOverview:
    """Tests for the pricing overview built from the bundled fixture."""

    def test_aligned_years(self, pricing_table):
        overview = pricing_overview(pricing_table)
        assert overview["years"] == [2022, 2023, 2024, 2025, 2026]
        assert build_aligned_years([{"year": 2025}], [_price(2023, 1, 1, 1, 0)]) == [2023, 2025]

    def test_summary(self, pricing_table):
        summary = pricing_overview(pricing_table)["summary"]

        assert summary["max_increase_pct"]["package"] == "Mamãe Coruja"
        assert summary["max_increase_pct"]["year"] == 2025
        assert summary["max_increase_rs"] == {"package": "Super Mãe", "year": 2025, "value": 71}
        assert {"package": "Super Mãe", "year": 2024} in summary["no_adjustment_years"]
        assert set(summary["cagr"]) == {"Mamãe Coruja", "Super Mãe"}
        assert summary["cagr"]["Mamãe Coruja"] == pytest.approx(compute_cagr(116, 196, 3))
        assert summary["extra_photo_variation"]["rs"] == 1

    def test_interval_last2(self, pricing_table):
        overview = pricing_overview(pricing_table, interval="last2")
        assert overview["years"] == [2025, 2026]
        for pkg in overview["packages"]:
            assert [r["year"] for r in pkg["series"]] == [2025, 2026]
        assert overview["summary"]["cagr"] == {}

    def test_unknown_interval(self, pricing_table):
        with pytest.raises(ValueError, match="Unknown interval"):
            pricing_overview(pricing_table, interval="last9")

    def test_fixture_has_no_inconsistent_rows(self, pricing_table):
        overview = pricing_overview(pricing_table)
        assert not any(r["needs_adjustment_badge"] for pkg in overview["packages"] for r in pkg["series"])


class TestExport:
    """Tests for the pricing-adjustment CSV."""

    def test_header_and_field_order(self, pricing_table):
        lines = export_pricing_csv(pricing_table).splitlines()
        assert lines[0] == ",".join(EXPORT_COLUMNS)
        assert lines[1] == "Mamãe Coruja,2023,116,58,1x 58,58,,,,"
        assert lines[2].startswith("Mamãe Coruja,2024,136,68,1x 68,68,20,17.24")

    def test_zero_delta_renders_empty(self, pricing_table):
        lines = export_pricing_csv(pricing_table).splitlines()
        assert "Super Mãe,2024,348,58,5x 58,290,,,," in lines

    def test_extra_photo_rows(self, pricing_table):
        lines = export_pricing_csv(pricing_table).splitlines()
        extra = [line for line in lines if line.startswith("Foto Extra")]
        assert extra[0] == "Foto Extra,2022,15,-,,,,,,"
        assert extra[1].startswith("Foto Extra,2023,16,-,,,1,6.66")
        assert extra[1].endswith(",,")

    def test_interval_keeps_full_history_deltas(self, pricing_table):
        lines = export_pricing_csv(pricing_table, interval="last2").splitlines()
        assert {line.split(",")[1] for line in lines[1:]} == {"2025", "2026"}
        coruja_2025 = next(line for line in lines if line.startswith("Mamãe Coruja,2025,"))
        assert coruja_2025.split(",")[6] != ""

    def test_one_row_per_package_year(self, small_pricing):
        frame = pricing_report_frame(small_pricing)
        assert list(frame.columns) == EXPORT_COLUMNS
        assert list(frame["Ano"]) == ["2024", "2025", "2024", "2025"]
        assert list(frame["Parcelas"]) == ["1x 50", "2x 35", "", ""]

    def test_empty_table(self):
        assert export_pricing_csv(PricingTable()).strip() == ",".join(EXPORT_COLUMNS)
