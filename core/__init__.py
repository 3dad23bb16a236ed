"""Core (UI-agnostic) campaign dashboard logic.

This package contains:
- record models and JSON fixture loading (orders, customers, price tables)
- campaign settings normalization
- order analytics, pricing deltas and customer segments (JSON-serializable payloads)
- chart helpers (Altair -> Vega-Lite spec dict)
"""
