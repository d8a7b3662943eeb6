from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime

class AircraftBase(BaseModel):
    registration: str = Field(..., min_length=1)  # Stored upper-cased, e.g. HS-ABC
    aircraft_type: str = Field(..., min_length=1)
    engine_type: str = Field(..., min_length=1)
    engine_qty: int = Field(..., gt=0, description="Number of engines fitted")
    active: bool = True

class AircraftCreate(AircraftBase):
    pass

class AircraftUpdate(BaseModel):
    registration: Optional[str] = Field(None, min_length=1)
    aircraft_type: Optional[str] = Field(None, min_length=1)
    engine_type: Optional[str] = Field(None, min_length=1)
    engine_qty: Optional[int] = Field(None, gt=0)
    active: Optional[bool] = None

class Aircraft(AircraftBase):
    id: str = Field(alias="_id")
    created_at: datetime
    updated_at: datetime

    class Config:
        populate_by_name = True


# ============================================================
# INDEX DEFINITION
# ============================================================

AIRCRAFT_INDEXES = [
    {
        "keys": [("registration", 1)],
        "unique": True,
        "name": "registration_unique"
    },
]
