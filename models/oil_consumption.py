"""
Oil Consumption Model

One record per oil-add event on an engine: the flight hours flown since
the previous add and the quantity of oil added.

Collection: oil_consumptions (soft delete via deleted_at)
"""

from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class OilConsumptionBase(BaseModel):
    date: datetime
    flight_hours: float = Field(..., ge=0, description="Flight hours since the previous oil add")
    oil_added: float = Field(..., ge=0, description="Quantity of oil added")
    remarks: Optional[str] = None


class OilConsumptionCreate(OilConsumptionBase):
    engine_id: str = Field(..., min_length=1)


class OilConsumptionUpdate(BaseModel):
    date: Optional[datetime] = None
    flight_hours: Optional[float] = Field(None, ge=0)
    oil_added: Optional[float] = Field(None, ge=0)
    remarks: Optional[str] = None
    engine_id: Optional[str] = Field(None, min_length=1)


class OilConsumption(OilConsumptionBase):
    id: str = Field(alias="_id")
    engine_id: str
    created_at: datetime
    updated_at: datetime
    deleted_at: Optional[datetime] = None

    class Config:
        populate_by_name = True


class ConsumptionRateResult(BaseModel):
    """Outcome of one aggregation pass over an engine's consumption history"""
    engine_id: str
    records_considered: int = 0
    samples: int = 0
    average_consumption_rate_per_hour: Optional[float] = None
    estimated_hours_remaining: Optional[float] = None
    updated: bool = False


# ============================================================
# INDEX DEFINITION
# ============================================================

OIL_CONSUMPTION_INDEXES = [
    {
        "keys": [("engine_id", 1), ("date", 1)],
        "name": "engine_date_idx"
    },
]
