from fastapi import APIRouter, Depends, status
from motor.motor_asyncio import AsyncIOMotorDatabase
from database.mongodb import get_database
from models.aircraft import Aircraft, AircraftCreate, AircraftUpdate
from models.engine import AircraftWithEngines
from models.user import Principal
from services.auth_deps import get_current_user, require_duo_verification
from services.errors import DuplicateKey, NotFound
from datetime import datetime
from typing import List
import logging
import uuid

logger = logging.getLogger(__name__)
router = APIRouter(
    prefix="/api/aircraft",
    tags=["aircraft"],
    dependencies=[Depends(get_current_user)]
)

def format_registration(registration: str) -> str:
    """Format registration to uppercase"""
    return registration.upper().strip()

async def attach_engines(db: AsyncIOMotorDatabase, aircraft_docs: List[dict]) -> List[dict]:
    """Add each aircraft's non-deleted engines under 'engines'"""
    aircraft_ids = [a["_id"] for a in aircraft_docs]
    engines = await db.engines.find({
        "aircraft_id": {"$in": aircraft_ids},
        "deleted_at": None
    }).sort("position", 1).to_list(length=None)

    by_aircraft = {}
    for engine in engines:
        by_aircraft.setdefault(engine["aircraft_id"], []).append(engine)

    return [{**a, "engines": by_aircraft.get(a["_id"], [])} for a in aircraft_docs]

async def get_aircraft_or_404(db: AsyncIOMotorDatabase, aircraft_id: str) -> dict:
    aircraft_doc = await db.aircrafts.find_one({"_id": aircraft_id})
    if not aircraft_doc:
        raise NotFound(f"Aircraft not found with ID: {aircraft_id}")
    return aircraft_doc

async def ensure_registration_free(db: AsyncIOMotorDatabase, registration: str, exclude_id: str = None):
    query = {"registration": registration}
    if exclude_id:
        query["_id"] = {"$ne": exclude_id}
    existing = await db.aircrafts.find_one(query)
    if existing:
        raise DuplicateKey(
            f"Aircraft with registration {registration} already exists",
            error_code="DUPLICATE_REGISTRATION"
        )

@router.get("", response_model=List[AircraftWithEngines])
async def get_all_aircraft(db: AsyncIOMotorDatabase = Depends(get_database)):
    """Get all aircraft with their engines"""
    aircraft_list = await db.aircrafts.find({}).sort("created_at", -1).to_list(length=None)
    return await attach_engines(db, aircraft_list)

@router.get("/{aircraft_id}", response_model=AircraftWithEngines)
async def get_aircraft(
    aircraft_id: str,
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """Get a specific aircraft by ID"""
    aircraft_doc = await get_aircraft_or_404(db, aircraft_id)
    return (await attach_engines(db, [aircraft_doc]))[0]

@router.post("", response_model=Aircraft, status_code=status.HTTP_201_CREATED)
async def create_aircraft(
    aircraft: AircraftCreate,
    current_user: Principal = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """Create a new aircraft"""
    registration = format_registration(aircraft.registration)
    await ensure_registration_free(db, registration)

    now = datetime.utcnow()
    aircraft_dict = {
        "_id": str(uuid.uuid4()),
        "registration": registration,
        "aircraft_type": aircraft.aircraft_type,
        "engine_type": aircraft.engine_type,
        "engine_qty": aircraft.engine_qty,
        "active": aircraft.active,
        "created_at": now,
        "updated_at": now
    }

    await db.aircrafts.insert_one(aircraft_dict)
    logger.info(f"Aircraft {registration} created by {current_user.username}")

    return Aircraft(**aircraft_dict)

@router.patch("/{aircraft_id}", response_model=AircraftWithEngines)
async def update_aircraft(
    aircraft_id: str,
    aircraft_update: AircraftUpdate,
    current_user: Principal = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """Update an aircraft"""
    existing = await get_aircraft_or_404(db, aircraft_id)

    # Build update dict (only fields sent by the client)
    update_data = aircraft_update.model_dump(exclude_unset=True, exclude_none=True)

    if "registration" in update_data:
        update_data["registration"] = format_registration(update_data["registration"])
        if update_data["registration"] != existing["registration"]:
            await ensure_registration_free(db, update_data["registration"], exclude_id=aircraft_id)

    if update_data:
        update_data["updated_at"] = datetime.utcnow()
        await db.aircrafts.update_one(
            {"_id": aircraft_id},
            {"$set": update_data}
        )

    updated_aircraft = await db.aircrafts.find_one({"_id": aircraft_id})
    logger.info(f"Aircraft {aircraft_id} updated by {current_user.username}")

    return (await attach_engines(db, [updated_aircraft]))[0]

@router.delete(
    "/{aircraft_id}",
    dependencies=[Depends(require_duo_verification)]
)
async def delete_aircraft(
    aircraft_id: str,
    current_user: Principal = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """Delete an aircraft; its engines are soft deleted with it"""
    await get_aircraft_or_404(db, aircraft_id)

    now = datetime.utcnow()
    await db.engines.update_many(
        {"aircraft_id": aircraft_id, "deleted_at": None},
        {"$set": {"deleted_at": now, "updated_at": now}}
    )
    await db.aircrafts.delete_one({"_id": aircraft_id})

    logger.info(f"Aircraft {aircraft_id} deleted by {current_user.username}")
    return {"message": "Aircraft deleted successfully"}
