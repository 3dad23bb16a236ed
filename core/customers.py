from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, Sequence

import pandas as pd

from core.analytics import filter_by_year, lead_time_days
from core.data import OrdersLike, orders_to_frame
from core.models import Customer


def customers_not_in_year(
    orders: OrdersLike,
    customers: Iterable[Customer],
    year: int,
    previous_years: Optional[Sequence[int]] = None,
) -> List[Customer]:
    """Customers who bought in any of `previous_years` but not in `year`."""
    df = orders_to_frame(orders)
    previous_years = list(previous_years) if previous_years is not None else [year - 2, year - 1]
    current_ids = set(filter_by_year(df, year)["customer_id"])
    previous_ids = set(df[df["year"].isin(previous_years)]["customer_id"])
    return [c for c in customers if c.id in previous_ids and c.id not in current_ids]


def customer_last_order(customer_id: str, orders: OrdersLike) -> Optional[Dict[str, Any]]:
    df = orders_to_frame(orders)
    mine = df[df["customer_id"] == customer_id]
    if mine.empty:
        return None
    row = mine.sort_values("created_at", ascending=False, kind="mergesort").iloc[0]
    return {
        "id": str(row["id"]),
        "year": int(row["year"]),
        "package_name": str(row["package_name"]),
        "total_amount": float(row["total_amount"]),
        "created_at": row["created_at"].isoformat(),
    }


def customer_total_spent(customer_id: str, orders: OrdersLike) -> float:
    df = orders_to_frame(orders)
    return float(df.loc[df["customer_id"] == customer_id, "total_amount"].sum())


def lapsed_customers(orders: OrdersLike, customers: Iterable[Customer], year: int) -> List[Dict[str, Any]]:
    """Re-engagement list: previous buyers missing from `year`, with their history."""
    df = orders_to_frame(orders)
    out = []
    for c in customers_not_in_year(df, customers, year):
        mine = df[df["customer_id"] == c.id]
        years = sorted(int(y) for y in mine["year"].unique())
        last = customer_last_order(c.id, mine)
        out.append(
            {
                "id": c.id,
                "name": c.name,
                "contact_handle": c.contact_handle,
                "email": c.email,
                "tags": list(c.tags),
                "years": years,
                "order_count": int(len(mine)),
                "client_since": years[0] if years else None,
                "last_package": last["package_name"] if last else None,
                "total_spent": float(mine["total_amount"].sum()),
            }
        )
    return sorted(out, key=lambda r: (-r["order_count"], -r["total_spent"], r["name"]))


def session_orders(orders: OrdersLike, year: int, status: str = "all") -> List[Dict[str, Any]]:
    """Orders of a year split by session state: `awaiting` (no session yet), `booked`, or `all`."""
    df = filter_by_year(orders, year)
    if status == "awaiting":
        df = df[df["session_at"].isna()]
    elif status == "booked":
        df = df[df["session_at"].notna()]
    elif status != "all":
        raise ValueError(f"Unknown session status '{status}'")

    lead = lead_time_days(df)
    df = df.sort_values("created_at", kind="mergesort")
    rows = []
    for idx, r in df.iterrows():
        rows.append(
            {
                "id": str(r["id"]),
                "customer_id": str(r["customer_id"]),
                "package_name": str(r["package_name"]),
                "status": str(r["status"]),
                "created_at": r["created_at"].isoformat(),
                "session_at": r["session_at"].isoformat() if pd.notna(r["session_at"]) else None,
                "lead_time_days": int(lead[idx]) if idx in lead.index else None,
            }
        )
    return rows


def session_summary(orders: OrdersLike, year: int) -> Dict[str, int]:
    df = filter_by_year(orders, year)
    booked = int(df["session_at"].notna().sum())
    return {"total": int(len(df)), "booked": booked, "awaiting": int(len(df)) - booked}


def customers_with_tag(customers: Iterable[Customer], tag: str) -> List[Customer]:
    needle = tag.lower()
    return [c for c in customers if any(t.lower() == needle for t in c.tags)]
