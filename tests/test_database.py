"""
Test startup index creation
"""

import pytest
from pymongo.errors import DuplicateKeyError

from database.mongodb import ensure_indexes


class TestEnsureIndexes:

    async def test_registration_index_is_unique(self, db):
        await ensure_indexes(db)

        await db.aircrafts.insert_one({"_id": "a1", "registration": "C-FIDX"})
        with pytest.raises(DuplicateKeyError):
            await db.aircrafts.insert_one({"_id": "a2", "registration": "C-FIDX"})

    async def test_rerun_with_same_definitions_is_a_noop(self, db):
        await ensure_indexes(db)
        await ensure_indexes(db)

        await db.engines.insert_many([
            {"_id": "e1", "aircraft_id": "a1", "position": 1},
            {"_id": "e2", "aircraft_id": "a1", "position": 1, "deleted_at": "2024-01-01"},
        ])
        assert await db.engines.count_documents({"aircraft_id": "a1"}) == 2
