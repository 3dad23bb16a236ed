from __future__ import annotations

import logging
import math
from datetime import date
from typing import List, Literal, Optional

import numpy as np
import pandas as pd
from fastapi import FastAPI, Query
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from api.schemas import CampaignSettingsModel, YearsResponse
from core.analytics import accumulate_series, build_day_series
from core.charts import day_series_chart, pricing_trend_chart
from core.customers import lapsed_customers, session_orders, session_summary
from core.dashboard import build_dashboard_snapshot
from core.data import REFERENCE_TODAY, load_dashboard_data
from core.filters import CampaignSettings, normalize_settings
from core.pricing import export_pricing_csv, pricing_overview


app = FastAPI(title="Campaign Dashboard API", version="0.1.0")
logger = logging.getLogger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173", "http://127.0.0.1:5173", "http://localhost:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _settings_from_model(model: Optional[CampaignSettingsModel]) -> CampaignSettings:
    return normalize_settings(model.model_dump() if model is not None else {})


def _json(data: object) -> JSONResponse:
    """Return JSON with safe encoding for pandas/numpy objects."""

    def _safe_float(value: object) -> float | None:
        try:
            out = float(value)  # type: ignore[arg-type]
        except Exception:
            return None
        if math.isnan(out) or math.isinf(out):
            return None
        return out

    return JSONResponse(
        content=jsonable_encoder(
            data,
            custom_encoder={
                type(pd.NA): lambda _: None,
                np.integer: int,
                float: _safe_float,
                np.floating: _safe_float,
                np.bool_: bool,
                pd.Timestamp: lambda ts: ts.isoformat(),
            },
        )
    )


def _error(exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=500, content={"error": str(exc), "type": type(exc).__name__})


def _day_points(start: Optional[date], end: Optional[date], years: Optional[List[int]], metric: str, today: date):
    data_ctx = load_dashboard_data()
    settings = CampaignSettings()
    end = end or today
    start = start or date(end.year, settings.start_month, settings.start_day)
    years = years or [end.year - 2, end.year - 1, end.year]
    return build_day_series(data_ctx["orders_df"], start, end, years, metric=metric)


@app.get("/meta/years", response_model=YearsResponse)
def meta_years():
    try:
        data_ctx = load_dashboard_data()
        return _json({"years": data_ctx.get("years", [])})
    except Exception as exc:
        logger.exception("meta_years failed")
        return _error(exc)


@app.get("/dashboard")
def dashboard(today: Optional[date] = Query(default=None)):
    try:
        data_ctx = load_dashboard_data()
        snapshot = build_dashboard_snapshot(
            data_ctx["orders_df"],
            data_ctx["pricing"],
            today or REFERENCE_TODAY,
            customers=data_ctx["customers"],
        )
        return _json(snapshot)
    except Exception as exc:
        logger.exception("dashboard failed")
        return _error(exc)


@app.post("/dashboard")
def dashboard_with_settings(settings: CampaignSettingsModel, today: Optional[date] = Query(default=None)):
    try:
        data_ctx = load_dashboard_data()
        snapshot = build_dashboard_snapshot(
            data_ctx["orders_df"],
            data_ctx["pricing"],
            today or REFERENCE_TODAY,
            settings=_settings_from_model(settings),
            customers=data_ctx["customers"],
        )
        return _json(snapshot)
    except Exception as exc:
        logger.exception("dashboard_with_settings failed")
        return _error(exc)


@app.get("/sales/day-series")
def sales_day_series(
    start: Optional[date] = Query(default=None),
    end: Optional[date] = Query(default=None),
    years: Optional[List[int]] = Query(default=None),
    metric: Literal["orders", "revenue"] = Query(default="orders"),
    view: Literal["daily", "cumulative"] = Query(default="daily"),
    today: Optional[date] = Query(default=None),
):
    try:
        points = _day_points(start, end, years, metric, today or REFERENCE_TODAY)
        if view == "cumulative":
            points = accumulate_series(points)
        return _json({"metric": metric, "view": view, "points": [p.to_dict() for p in points]})
    except Exception as exc:
        logger.exception("sales_day_series failed")
        return _error(exc)


@app.get("/charts/day-series")
def chart_day_series(
    start: Optional[date] = Query(default=None),
    end: Optional[date] = Query(default=None),
    years: Optional[List[int]] = Query(default=None),
    metric: Literal["orders", "revenue"] = Query(default="orders"),
    today: Optional[date] = Query(default=None),
):
    try:
        points = _day_points(start, end, years, metric, today or REFERENCE_TODAY)
        return _json({"chart": day_series_chart(points, metric=metric)})
    except Exception as exc:
        logger.exception("chart_day_series failed")
        return _error(exc)


@app.get("/sessions")
def sessions(
    year: Optional[int] = Query(default=None),
    status: Literal["all", "awaiting", "booked"] = Query(default="all"),
):
    try:
        data_ctx = load_dashboard_data()
        year = year or REFERENCE_TODAY.year
        orders_df = data_ctx["orders_df"]
        return _json(
            {
                "year": year,
                "status": status,
                "summary": session_summary(orders_df, year),
                "orders": session_orders(orders_df, year, status),
            }
        )
    except Exception as exc:
        logger.exception("sessions failed")
        return _error(exc)


@app.get("/customers/lapsed")
def customers_lapsed(year: Optional[int] = Query(default=None)):
    try:
        data_ctx = load_dashboard_data()
        year = year or REFERENCE_TODAY.year
        return _json({"year": year, "customers": lapsed_customers(data_ctx["orders_df"], data_ctx["customers"], year)})
    except Exception as exc:
        logger.exception("customers_lapsed failed")
        return _error(exc)


@app.get("/pricing")
def pricing(interval: Literal["all", "last2", "last3"] = Query(default="all")):
    try:
        data_ctx = load_dashboard_data()
        overview = pricing_overview(data_ctx["pricing"], interval=interval)
        return _json({**overview, "chart": pricing_trend_chart(overview)})
    except Exception as exc:
        logger.exception("pricing failed")
        return _error(exc)


@app.get("/export/pricing")
def export_pricing(interval: Literal["all", "last2", "last3"] = Query(default="all")):
    data_ctx = load_dashboard_data()
    csv_bytes = export_pricing_csv(data_ctx["pricing"], interval=interval).encode("utf-8")
    return Response(
        content=csv_bytes,
        media_type="text/csv",
        headers={"Content-Disposition": "attachment; filename=reajustes_precificacao.csv"},
    )
