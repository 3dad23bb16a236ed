"""Deterministic synthetic orders and customers for the campaign dashboard.

The generator reproduces the studio's historical shape: a fixed number of orders
per (year, package, month), priced with that year's package table, with about
60% of orders already carrying a booked session.
"""

from __future__ import annotations

import calendar
import math
import unicodedata
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Tuple

from core.models import Customer, Order


FIRST_NAMES = [
    "Ana", "Beatriz", "Camila", "Daniela", "Eduarda", "Fernanda", "Gabriela", "Helena",
    "Isabela", "Juliana", "Karen", "Larissa", "Mariana", "Natália", "Olívia", "Patrícia",
    "Rafaela", "Sabrina", "Tatiana", "Valéria", "Adriana", "Bruna", "Carolina", "Débora",
    "Eliane", "Fabiana", "Giovana", "Heloísa", "Ingrid", "Jéssica", "Karina", "Letícia",
    "Michele", "Nathalia", "Priscila", "Renata", "Simone", "Talita", "Vivian", "Aline",
    "Bianca", "Cristina", "Diana", "Elisa", "Flávia", "Giulia", "Lorena", "Monique",
    "Paula", "Raquel", "Sandra", "Thaís", "Vanessa", "Yasmin", "Amanda", "Cíntia",
    "Denise", "Érica", "Gisele", "Joana", "Lívia", "Marta", "Nina", "Rosana",
    "Solange", "Tereza", "Vera", "Andréa", "Clara", "Estela", "Graziela", "Ivone",
    "Luana", "Márcia", "Norma", "Paloma", "Regina", "Sueli", "Tamires", "Vitória",
]
LAST_NAMES = [
    "Silva", "Santos", "Oliveira", "Souza", "Lima", "Pereira", "Costa", "Rodrigues",
    "Almeida", "Nascimento", "Araújo", "Melo", "Barbosa", "Ribeiro", "Carvalho",
    "Gomes", "Martins", "Rocha", "Dias", "Ferreira",
]

CORUJA = "Mamãe Coruja"
SUPER = "Super Mãe"
MELHOR = "A melhor mãe do mundo"

# (entry, total) per year and package
ORDER_PRICES: Dict[int, Dict[str, Tuple[float, float]]] = {
    2024: {CORUJA: (75, 150), SUPER: (120, 350), MELHOR: (180, 700)},
    2025: {CORUJA: (90, 180), SUPER: (130, 400), MELHOR: (200, 750)},
    2026: {CORUJA: (98, 196), SUPER: (120, 450), MELHOR: (180, 885)},
}

# (year, package, month, order count)
ORDER_SPECS: List[Tuple[int, str, int, int]] = [
    (2024, CORUJA, 3, 15),
    (2024, CORUJA, 4, 35),
    (2024, CORUJA, 5, 9),
    (2024, SUPER, 3, 14),
    (2024, SUPER, 4, 41),
    (2024, SUPER, 5, 4),
    (2024, SUPER, 6, 1),
    (2025, MELHOR, 2, 1),
    (2025, MELHOR, 4, 1),
    (2025, MELHOR, 5, 1),
    (2025, CORUJA, 2, 8),
    (2025, CORUJA, 3, 11),
    (2025, CORUJA, 4, 23),
    (2025, CORUJA, 5, 17),
    (2025, SUPER, 2, 4),
    (2025, SUPER, 3, 11),
    (2025, SUPER, 4, 12),
    (2025, SUPER, 5, 4),
    (2026, CORUJA, 2, 7),
    (2026, SUPER, 2, 5),
    (2026, MELHOR, 2, 3),
]

# Last day with data in the partially elapsed year.
PARTIAL_YEAR_CUTOFF = {2026: 23}
CUSTOMER_OFFSETS = {2024: 0, 2025: 10, 2026: 30}


def seeded_random(seed: int) -> Callable[[], float]:
    """Park-Miller minimal standard generator returning floats in [0, 1)."""
    state = [seed]

    def _next() -> float:
        state[0] = (state[0] * 16807) % 2147483647
        return (state[0] - 1) / 2147483646

    return _next


def _ascii_fold(text: str) -> str:
    return "".join(c for c in unicodedata.normalize("NFD", text) if unicodedata.category(c) != "Mn")


def generate_customers() -> List[Customer]:
    customers: List[Customer] = []
    for i, first in enumerate(FIRST_NAMES):
        if i % 10 == 0:
            tags: Tuple[str, ...] = ("VIP",)
        elif i % 7 == 0:
            tags = ("voltou_2025",)
        else:
            tags = ()
        customers.append(
            Customer(
                id=f"c{i + 1}",
                name=f"{first} {LAST_NAMES[i % len(LAST_NAMES)]}",
                contact_handle=f"(21) 9{8000 + i:04d}-{str(1000 + i * 7)[-4:]}",
                email=f"{_ascii_fold(first).lower()}{i}@email.com" if i % 3 == 0 else None,
                tags=tags,
            )
        )
    return customers


def generate_orders(customers: List[Customer], seed: int = 42) -> List[Order]:
    rand = seeded_random(seed)
    payment_methods = ("pix", "card", "cash", "transfer")
    cust_idx = dict(CUSTOMER_OFFSETS)
    orders: List[Order] = []
    oid = 1

    for year, package, month, count in ORDER_SPECS:
        max_day = PARTIAL_YEAR_CUTOFF.get(year) or calendar.monthrange(year, month)[1]
        entry, total = ORDER_PRICES[year][package]

        for i in range(count):
            day = max(1, min(max_day, math.floor((i / count) * max_day) + 1))
            customer = customers[cust_idx[year] % len(customers)]
            cust_idx[year] += 1

            created_at = datetime(year, month, day, 8 + math.floor(rand() * 12), math.floor(rand() * 60))
            has_session = rand() < 0.6
            session_at = created_at + timedelta(days=7 + math.floor(rand() * 23)) if has_session else None

            if session_at is not None:
                status = "photographed" if rand() < 0.5 else "post-sale"
            else:
                status = "reserved" if rand() < 0.5 else "scheduled"

            orders.append(
                Order(
                    id=f"o{oid}",
                    year=year,
                    customer_id=customer.id,
                    created_at=created_at,
                    session_at=session_at,
                    package_name=package,
                    entry_amount=float(entry),
                    total_amount=float(total),
                    entry_payment_method=payment_methods[math.floor(rand() * len(payment_methods))],
                    status=status,
                )
            )
            oid += 1
    return orders
