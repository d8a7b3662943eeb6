"""
Engine Model

An engine fitted to an aircraft at a numbered position. The oil fields
(average_consumption_rate_per_hour, estimated_hours_remaining,
last_calculation_date) are derived from the engine's oil consumption
history and rewritten after every consumption change.

Collection: engines (soft delete via deleted_at)

The nested response shapes (aircraft with engines, consumption with its
engine) live here because they all hang off the engine.
"""

from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime

from models.aircraft import Aircraft
from models.oil_consumption import OilConsumption


class EngineBase(BaseModel):
    serial_number: str = Field(..., min_length=1)
    position: int = Field(..., ge=1, description="Engine position on the aircraft, starting at 1")
    model: str = Field(..., min_length=1)
    active: bool = True

    # Oil status (derived)
    average_consumption_rate_per_hour: Optional[float] = None
    estimated_hours_remaining: Optional[float] = None
    low_oil_threshold_hours: Optional[float] = None
    last_calculation_date: Optional[datetime] = None


class EngineCreate(EngineBase):
    aircraft_id: str = Field(..., min_length=1)


class EngineUpdate(BaseModel):
    serial_number: Optional[str] = Field(None, min_length=1)
    position: Optional[int] = Field(None, ge=1)
    model: Optional[str] = Field(None, min_length=1)
    active: Optional[bool] = None
    average_consumption_rate_per_hour: Optional[float] = None
    estimated_hours_remaining: Optional[float] = None
    low_oil_threshold_hours: Optional[float] = None
    last_calculation_date: Optional[datetime] = None


class Engine(EngineBase):
    id: str = Field(alias="_id")
    aircraft_id: str
    created_at: datetime
    updated_at: datetime
    deleted_at: Optional[datetime] = None

    class Config:
        populate_by_name = True


class EngineWithAircraft(Engine):
    aircraft: Optional[Aircraft] = None


class EngineDetail(EngineWithAircraft):
    """Engine with its aircraft and non-deleted oil consumptions (newest first)"""
    oil_consumptions: List[OilConsumption] = []


class EngineWithConsumptions(Engine):
    oil_consumptions: List[OilConsumption] = []


class AircraftWithEngines(Aircraft):
    engines: List[Engine] = []


class OilConsumptionDetail(OilConsumption):
    engine: Optional[EngineWithAircraft] = None


# ============================================================
# INDEX DEFINITION
# ============================================================

ENGINE_INDEXES = [
    {
        "keys": [("aircraft_id", 1), ("position", 1)],
        "name": "aircraft_position_idx"
    },
]
