"""
Oil Consumption Rate Service

Keeps an engine's derived oil metrics in step with its consumption history.
Called explicitly by the oil consumption routes after every create, update
or soft delete, inside the same request.

RATE:
- Non-deleted records of the engine, oldest first
- The first record only opens the history; each later record with
  flight_hours > 0 contributes one sample oil_added / flight_hours
- average = mean of the samples

ESTIMATED HOURS REMAINING:
- Only when the engine has low_oil_threshold_hours set and average > 0
- assumed_remaining_oil_volume / average. The volume is a configured
  placeholder, not a measured oil level.

Concurrent runs for one engine are last-write-wins. Each run recomputes from
the committed records and $sets only the derived fields.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

from config import get_settings
from models.oil_consumption import ConsumptionRateResult
from services.errors import AggregationFailure

logger = logging.getLogger(__name__)

MIN_RECORDS_FOR_RATE = 2


def compute_average_rate(records: Sequence[Dict[str, Any]]) -> Tuple[Optional[float], int]:
    """
    Average per-record oil rate over a date-ordered history.

    Returns (average, sample_count); average is None when fewer than two
    records exist or no record after the first has positive flight hours.
    """
    if len(records) < MIN_RECORDS_FOR_RATE:
        return None, 0

    total_rate = 0.0
    rate_count = 0
    for record in records[1:]:
        flight_hours = record.get("flight_hours") or 0
        if flight_hours > 0:
            total_rate += (record.get("oil_added") or 0) / flight_hours
            rate_count += 1

    if rate_count == 0:
        return None, 0
    return total_rate / rate_count, rate_count


def estimate_hours_remaining(
    average_rate: float,
    low_oil_threshold_hours: Optional[float],
    remaining_oil_volume: float,
) -> Optional[float]:
    if low_oil_threshold_hours is None or average_rate <= 0:
        return None
    return remaining_oil_volume / average_rate


class OilConsumptionService:
    """
    Recomputes engine oil metrics.

    Collections used:
    - oil_consumptions: read, non-deleted records of one engine
    - engines: derived fields written with $set
    """

    def __init__(self, db: AsyncIOMotorDatabase, remaining_oil_volume: Optional[float] = None):
        self.db = db
        if remaining_oil_volume is None:
            remaining_oil_volume = get_settings().assumed_remaining_oil_volume
        self.remaining_oil_volume = remaining_oil_volume

    async def load_active_records(self, engine_id: str) -> List[Dict[str, Any]]:
        cursor = self.db.oil_consumptions.find(
            {"engine_id": engine_id, "deleted_at": None}
        ).sort([("date", 1), ("created_at", 1)])
        return await cursor.to_list(length=None)

    async def recalculate_engine_rate(self, engine_id: str) -> ConsumptionRateResult:
        """
        Refresh average_consumption_rate_per_hour, last_calculation_date and,
        when possible, estimated_hours_remaining for one engine.

        Leaves the engine untouched when no rate can be computed. Raises
        AggregationFailure if the records cannot be read or the engine
        cannot be written.
        """
        try:
            records = await self.load_active_records(engine_id)
            result = ConsumptionRateResult(engine_id=engine_id, records_considered=len(records))

            average_rate, samples = compute_average_rate(records)
            if average_rate is None:
                logger.debug(f"Engine {engine_id}: no rate from {len(records)} record(s), derived fields kept")
                return result

            engine = await self.db.engines.find_one({"_id": engine_id, "deleted_at": None})
            if not engine:
                logger.warning(f"Engine {engine_id} not found, oil rate not stored")
                return result

            update_data = {
                "average_consumption_rate_per_hour": average_rate,
                "last_calculation_date": datetime.utcnow(),
            }
            hours_remaining = estimate_hours_remaining(
                average_rate,
                engine.get("low_oil_threshold_hours"),
                self.remaining_oil_volume,
            )
            if hours_remaining is not None:
                update_data["estimated_hours_remaining"] = hours_remaining

            await self.db.engines.update_one({"_id": engine_id}, {"$set": update_data})
        except PyMongoError as e:
            logger.error(f"Error calculating oil consumption rate for engine {engine_id}: {e}", exc_info=True)
            raise AggregationFailure(engine_id) from e

        logger.info(f"Engine {engine_id} oil rate {average_rate:.4f}/h from {samples} sample(s)")
        return result.model_copy(update={
            "samples": samples,
            "average_consumption_rate_per_hour": average_rate,
            "estimated_hours_remaining": hours_remaining,
            "updated": True,
        })
