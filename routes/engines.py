"""
Engine Routes

Engines hang off an aircraft at a numbered position (one engine per
position per aircraft). Listings include the engine's aircraft and its
non-deleted oil consumption records, newest first.
"""

from fastapi import APIRouter, Depends, status
from motor.motor_asyncio import AsyncIOMotorDatabase
from datetime import datetime
from typing import List
import logging
import uuid

from database.mongodb import get_database
from models.engine import (
    Engine,
    EngineCreate,
    EngineUpdate,
    EngineDetail,
    EngineWithConsumptions,
)
from models.user import Principal
from routes.aircraft import get_aircraft_or_404
from services.auth_deps import get_current_user, require_duo_verification
from services.errors import DuplicateKey, NotFound

router = APIRouter(
    prefix="/api/engine",
    tags=["engines"],
    dependencies=[Depends(get_current_user)]
)
logger = logging.getLogger(__name__)

REQUIRED_ENGINE_FIELDS = ("serial_number", "position", "model", "active")


async def get_engine_or_404(db: AsyncIOMotorDatabase, engine_id: str) -> dict:
    engine = await db.engines.find_one({"_id": engine_id, "deleted_at": None})
    if not engine:
        raise NotFound(f"Engine not found with ID: {engine_id}")
    return engine


async def ensure_position_free(
    db: AsyncIOMotorDatabase,
    aircraft_id: str,
    position: int,
    exclude_id: str = None
):
    query = {"aircraft_id": aircraft_id, "position": position, "deleted_at": None}
    if exclude_id:
        query["_id"] = {"$ne": exclude_id}
    if await db.engines.find_one(query):
        raise DuplicateKey(
            f"This aircraft already has an engine at position {position}",
            error_code="DUPLICATE_ENGINE_POSITION"
        )


async def attach_details(db: AsyncIOMotorDatabase, engines: List[dict]) -> List[dict]:
    """Add 'aircraft' and 'oil_consumptions' to each engine document"""
    if not engines:
        return []

    engine_ids = [e["_id"] for e in engines]
    consumptions = await db.oil_consumptions.find({
        "engine_id": {"$in": engine_ids},
        "deleted_at": None
    }).sort("date", -1).to_list(length=None)

    consumptions_by_engine = {}
    for consumption in consumptions:
        consumptions_by_engine.setdefault(consumption["engine_id"], []).append(consumption)

    aircraft_ids = list({e["aircraft_id"] for e in engines})
    aircraft_docs = await db.aircrafts.find({"_id": {"$in": aircraft_ids}}).to_list(length=None)
    aircraft_by_id = {a["_id"]: a for a in aircraft_docs}

    return [
        {
            **engine,
            "aircraft": aircraft_by_id.get(engine["aircraft_id"]),
            "oil_consumptions": consumptions_by_engine.get(engine["_id"], [])
        }
        for engine in engines
    ]


@router.get("", response_model=List[EngineDetail])
async def get_engines(db: AsyncIOMotorDatabase = Depends(get_database)):
    """Get all engines with aircraft and oil consumptions"""
    engines = await db.engines.find({"deleted_at": None}).sort("created_at", -1).to_list(length=None)
    return await attach_details(db, engines)


@router.get("/aircraft/{aircraft_id}", response_model=List[EngineWithConsumptions])
async def get_engines_by_aircraft(
    aircraft_id: str,
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """Get the engines of one aircraft"""
    await get_aircraft_or_404(db, aircraft_id)

    engines = await db.engines.find({
        "aircraft_id": aircraft_id,
        "deleted_at": None
    }).sort("position", 1).to_list(length=None)
    return await attach_details(db, engines)


@router.get("/{engine_id}", response_model=EngineDetail)
async def get_engine(
    engine_id: str,
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    engine = await get_engine_or_404(db, engine_id)
    return (await attach_details(db, [engine]))[0]


@router.post("", response_model=Engine, status_code=status.HTTP_201_CREATED)
async def create_engine(
    engine: EngineCreate,
    current_user: Principal = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """Create an engine on an existing aircraft"""
    await get_aircraft_or_404(db, engine.aircraft_id)
    await ensure_position_free(db, engine.aircraft_id, engine.position)

    now = datetime.utcnow()
    engine_doc = {
        "_id": str(uuid.uuid4()),
        **engine.model_dump(),
        "created_at": now,
        "updated_at": now,
        "deleted_at": None
    }

    await db.engines.insert_one(engine_doc)
    logger.info(f"Engine {engine.serial_number} created at position {engine.position} "
                f"of aircraft {engine.aircraft_id} by {current_user.username}")

    return Engine(**engine_doc)


@router.patch("/{engine_id}", response_model=EngineDetail)
async def update_engine(
    engine_id: str,
    engine_update: EngineUpdate,
    current_user: Principal = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """
    Update an engine.

    The derived oil fields are accepted here but are overwritten by the
    next oil consumption recalculation.
    """
    engine = await get_engine_or_404(db, engine_id)

    # Oil fields may be cleared with null; the identifying fields may not
    update_data = {
        key: value
        for key, value in engine_update.model_dump(exclude_unset=True).items()
        if value is not None or key not in REQUIRED_ENGINE_FIELDS
    }

    if "position" in update_data and update_data["position"] != engine["position"]:
        await ensure_position_free(db, engine["aircraft_id"], update_data["position"], exclude_id=engine_id)

    if update_data:
        update_data["updated_at"] = datetime.utcnow()
        await db.engines.update_one({"_id": engine_id}, {"$set": update_data})

    logger.info(f"Engine {engine_id} updated by {current_user.username}")

    updated = await get_engine_or_404(db, engine_id)
    return (await attach_details(db, [updated]))[0]


@router.delete(
    "/{engine_id}",
    dependencies=[Depends(require_duo_verification)]
)
async def delete_engine(
    engine_id: str,
    current_user: Principal = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """Soft delete an engine"""
    await get_engine_or_404(db, engine_id)

    now = datetime.utcnow()
    await db.engines.update_one(
        {"_id": engine_id},
        {"$set": {"deleted_at": now, "updated_at": now}}
    )

    logger.info(f"Engine {engine_id} soft deleted by {current_user.username}")
    return {"message": "Engine deleted successfully"}
