from __future__ import annotations

import json
import logging
from dataclasses import asdict
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

import pandas as pd

from core.mock_data import generate_customers, generate_orders
from core.models import Customer, Order, PricingTable


logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).resolve().parents[1] / "data"
ORDERS_FILE = "orders.json"
CUSTOMERS_FILE = "customers.json"
PRICING_FILE = "pricing.json"

# Reference date the bundled fixtures were captured on. Only the API uses it, as
# the default when a request does not pass its own "today".
REFERENCE_TODAY = date(2026, 2, 23)

ORDER_COLUMNS = [
    "id",
    "year",
    "customer_id",
    "created_at",
    "session_at",
    "package_name",
    "entry_amount",
    "total_amount",
    "entry_payment_method",
    "status",
]

OrdersLike = Union[pd.DataFrame, Iterable[Order]]


def orders_to_frame(orders: OrdersLike) -> pd.DataFrame:
    """Build the canonical orders frame; a frame passed in is returned as a copy."""
    if isinstance(orders, pd.DataFrame):
        return orders.copy()
    df = pd.DataFrame([asdict(o) for o in orders], columns=ORDER_COLUMNS)
    df["created_at"] = pd.to_datetime(df["created_at"])
    df["session_at"] = pd.to_datetime(df["session_at"])
    df["year"] = df["year"].astype("int64")
    df["entry_amount"] = df["entry_amount"].astype(float)
    df["total_amount"] = df["total_amount"].astype(float)
    return df


def round_half_up(value: object, ndigits: int = 0) -> Optional[float]:
    if value is None or pd.isna(value):
        return None
    q = Decimal(10) ** -ndigits
    return float(Decimal(str(value)).quantize(q, rounding=ROUND_HALF_UP))


def round_int(value: object) -> int:
    out = round_half_up(value)
    return int(out) if out is not None else 0


def format_brl(value: object) -> str:
    if value is None or pd.isna(value):
        return "N/A"
    s = f"{float(value):,.2f}"
    return "R$ " + s.replace(",", "_").replace(".", ",").replace("_", ".")


def format_pct(value: Optional[float]) -> str:
    if value is None or pd.isna(value):
        return "N/A"
    sign = "+" if value > 0 else ""
    return f"{sign}{value:.1f}".replace(".", ",") + "%"


# ---------------- Loaders ----------------
def _read_json(path: Path) -> Any:
    with path.open(encoding="utf-8") as fh:
        return json.load(fh)


def load_orders(path: Path) -> List[Order]:
    raw = _read_json(path)
    if not isinstance(raw, list):
        raise ValueError(f"{path.name}: expected a list of orders")
    return [Order.from_dict(row) for row in raw]


def load_customers(path: Path) -> List[Customer]:
    raw = _read_json(path)
    if not isinstance(raw, list):
        raise ValueError(f"{path.name}: expected a list of customers")
    return [Customer.from_dict(row) for row in raw]


def load_pricing(path: Path) -> PricingTable:
    raw = _read_json(path)
    if not isinstance(raw, dict):
        raise ValueError(f"{path.name}: expected an object with 'packages' and 'extra_photo'")
    return PricingTable.from_dict(raw)


def get_source_files(data_dir: Path = DATA_DIR) -> List[Path]:
    return sorted(p for p in (data_dir / n for n in (ORDERS_FILE, CUSTOMERS_FILE, PRICING_FILE)) if p.exists())


def file_signature(files: List[Path]) -> Tuple[Tuple[str, float], ...]:
    return tuple((str(f), f.stat().st_mtime) for f in files)


# ---------------- Public API ----------------
@lru_cache(maxsize=4)
def _load_dashboard_data_cached(files_sig: Tuple[Tuple[str, float], ...]) -> Dict[str, object]:
    paths = {Path(name).name: Path(name) for name, _ in files_sig}

    if CUSTOMERS_FILE in paths:
        customers = load_customers(paths[CUSTOMERS_FILE])
    else:
        customers = generate_customers()
    if ORDERS_FILE in paths:
        orders = load_orders(paths[ORDERS_FILE])
    else:
        logger.info("No %s fixture found, generating synthetic orders", ORDERS_FILE)
        orders = generate_orders(customers)
    pricing = load_pricing(paths[PRICING_FILE]) if PRICING_FILE in paths else PricingTable()

    orders_df = orders_to_frame(orders)
    years = sorted(int(y) for y in orders_df["year"].unique())
    logger.debug("Loaded %d orders, %d customers, %d priced packages", len(orders), len(customers), len(pricing.packages))

    return {
        "files": [Path(name).name for name, _ in files_sig],
        "years": years,
        "orders": orders,
        "orders_df": orders_df,
        "customers": customers,
        "pricing": pricing,
    }


def load_dashboard_data(data_dir: Path = DATA_DIR) -> Dict[str, object]:
    return _load_dashboard_data_cached(file_signature(get_source_files(data_dir)))
