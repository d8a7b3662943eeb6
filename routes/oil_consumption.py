"""
Oil Consumption Routes

Every create, update and soft delete is followed, in the same request, by a
recalculation of the affected engine's oil rate. The record write is
committed first; a failed recalculation answers 500 AGGREGATION_FAILED and
the next mutation on that engine repairs the derived fields.
"""

from fastapi import APIRouter, Depends, status
from motor.motor_asyncio import AsyncIOMotorDatabase
from datetime import datetime
from typing import List
import logging
import uuid

from database.mongodb import get_database
from models.engine import OilConsumptionDetail
from models.oil_consumption import OilConsumption, OilConsumptionCreate, OilConsumptionUpdate
from models.user import Principal
from routes.engines import get_engine_or_404
from services.auth_deps import get_current_user, require_duo_verification
from services.errors import NotFound
from services.oil_consumption_service import OilConsumptionService

router = APIRouter(
    prefix="/api/oil-consumptions",
    tags=["oil-consumptions"],
    dependencies=[Depends(get_current_user)]
)
logger = logging.getLogger(__name__)


async def get_consumption_or_404(db: AsyncIOMotorDatabase, consumption_id: str) -> dict:
    consumption = await db.oil_consumptions.find_one({"_id": consumption_id, "deleted_at": None})
    if not consumption:
        raise NotFound(f"Oil consumption not found with ID: {consumption_id}")
    return consumption


async def attach_engine(db: AsyncIOMotorDatabase, consumptions: List[dict]) -> List[dict]:
    """Nest each record's engine, and the engine's aircraft, under 'engine'"""
    if not consumptions:
        return []

    engine_ids = list({c["engine_id"] for c in consumptions})
    engines = await db.engines.find({"_id": {"$in": engine_ids}}).to_list(length=None)

    aircraft_ids = list({e["aircraft_id"] for e in engines})
    aircraft_docs = await db.aircrafts.find({"_id": {"$in": aircraft_ids}}).to_list(length=None)
    aircraft_by_id = {a["_id"]: a for a in aircraft_docs}

    engine_by_id = {
        e["_id"]: {**e, "aircraft": aircraft_by_id.get(e["aircraft_id"])}
        for e in engines
    }
    return [{**c, "engine": engine_by_id.get(c["engine_id"])} for c in consumptions]


@router.get("", response_model=List[OilConsumptionDetail])
async def get_oil_consumptions(db: AsyncIOMotorDatabase = Depends(get_database)):
    """Get all oil consumption records, newest first"""
    consumptions = await db.oil_consumptions.find({"deleted_at": None}).sort("date", -1).to_list(length=None)
    return await attach_engine(db, consumptions)


@router.get("/engine/{engine_id}", response_model=List[OilConsumption])
async def get_oil_consumptions_by_engine(
    engine_id: str,
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    await get_engine_or_404(db, engine_id)

    return await db.oil_consumptions.find({
        "engine_id": engine_id,
        "deleted_at": None
    }).sort("date", -1).to_list(length=None)


@router.get("/{consumption_id}", response_model=OilConsumptionDetail)
async def get_oil_consumption(
    consumption_id: str,
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    consumption = await get_consumption_or_404(db, consumption_id)
    return (await attach_engine(db, [consumption]))[0]


@router.post("", response_model=OilConsumption, status_code=status.HTTP_201_CREATED)
async def create_oil_consumption(
    consumption: OilConsumptionCreate,
    current_user: Principal = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """Record an oil add and refresh the engine's oil rate"""
    await get_engine_or_404(db, consumption.engine_id)

    now = datetime.utcnow()
    consumption_doc = {
        "_id": str(uuid.uuid4()),
        **consumption.model_dump(),
        "created_at": now,
        "updated_at": now,
        "deleted_at": None
    }

    await db.oil_consumptions.insert_one(consumption_doc)
    logger.info(f"Oil consumption {consumption_doc['_id']} recorded on engine "
                f"{consumption.engine_id} by {current_user.username}")

    await OilConsumptionService(db).recalculate_engine_rate(consumption.engine_id)

    return OilConsumption(**consumption_doc)


@router.patch("/{consumption_id}", response_model=OilConsumption)
async def update_oil_consumption(
    consumption_id: str,
    consumption_update: OilConsumptionUpdate,
    current_user: Principal = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """
    Update an oil consumption record.

    Moving the record to another engine recalculates both the previous and
    the new engine.
    """
    existing = await get_consumption_or_404(db, consumption_id)

    # remarks may be cleared with null; the measured fields may not
    update_data = {
        key: value
        for key, value in consumption_update.model_dump(exclude_unset=True).items()
        if value is not None or key == "remarks"
    }

    previous_engine_id = existing["engine_id"]
    new_engine_id = update_data.get("engine_id", previous_engine_id)
    if new_engine_id != previous_engine_id:
        await get_engine_or_404(db, new_engine_id)

    if update_data:
        update_data["updated_at"] = datetime.utcnow()
        await db.oil_consumptions.update_one({"_id": consumption_id}, {"$set": update_data})

    logger.info(f"Oil consumption {consumption_id} updated by {current_user.username}")

    service = OilConsumptionService(db)
    await service.recalculate_engine_rate(new_engine_id)
    if new_engine_id != previous_engine_id:
        await service.recalculate_engine_rate(previous_engine_id)

    return await get_consumption_or_404(db, consumption_id)


@router.delete(
    "/{consumption_id}",
    dependencies=[Depends(require_duo_verification)]
)
async def delete_oil_consumption(
    consumption_id: str,
    current_user: Principal = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """Soft delete an oil consumption record and refresh the engine's oil rate"""
    consumption = await get_consumption_or_404(db, consumption_id)

    now = datetime.utcnow()
    await db.oil_consumptions.update_one(
        {"_id": consumption_id},
        {"$set": {"deleted_at": now, "updated_at": now}}
    )
    logger.info(f"Oil consumption {consumption_id} soft deleted by {current_user.username}")

    await OilConsumptionService(db).recalculate_engine_rate(consumption["engine_id"])

    return {"message": "Oil consumption deleted successfully"}
