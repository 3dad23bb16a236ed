from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class GoalsModel(BaseModel):
    orders: int = 120
    extra_photos: int = 200
    revenue: float = 35935.0
    sessions: int = 100
    extra_photos_per_order: float = 1.7
    by_package: Dict[str, int] = Field(
        default_factory=lambda: {"Super Mãe": 35, "Mamãe Coruja": 60, "A melhor mãe do mundo": 5}
    )


class CampaignSettingsModel(BaseModel):
    name: str = "Dia das Mães"
    start_month: int = 2
    start_day: int = 1
    target_month: int = 5
    target_day: int = 8
    compare_years: int = 2
    peak_days_top_n: int = 5
    forecast_window_days: int = 7
    ruler_offsets: List[int] = Field(default_factory=lambda: [-3, -2, -1, 0, 1, 2, 3])
    goals: GoalsModel = Field(default_factory=GoalsModel)


class YearsResponse(BaseModel):
    years: List[int]


class ErrorResponse(BaseModel):
    error: str
    type: Optional[str] = None
