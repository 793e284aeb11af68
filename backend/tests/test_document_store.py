"""
Parcel Server Backend: SQL Document Store Tests
================================================

What:  Exercises SQLDocumentStore against a real SQL engine.
How:   aiosqlite database file per test (see the `sql_store` fixture);
       the same JSON path queries run on PostgreSQL in production.

What we test:
    ✅ Identity assignment and `_id` lookups
    ✅ Field filters on string, integer and boolean values, per collection
    ✅ Sorting by a body field: numbers numerically, types ranked,
       newest-first tie-break; stored datetimes sort chronologically
    ✅ update_one / delete_one counts and merge semantics, concurrent deletes
    ✅ transaction() commits together and rolls back together
"""

import asyncio
import uuid
from datetime import datetime, timezone

import pytest

from app.database import create_engine_from_settings
from app.services.document_store import SQLDocumentStore


class TestInsertAndFind:

    @pytest.mark.asyncio
    async def test_insert_then_find_one_by_id(self, sql_store):
        parcels = sql_store.collection("parcels")

        result = await parcels.insert_one({"title": "gift", "cost": 150})
        document = await parcels.find_one({"_id": result.inserted_id})

        assert result.acknowledged is True
        assert document == {"_id": result.inserted_id, "title": "gift", "cost": 150}

    @pytest.mark.asyncio
    async def test_insert_ignores_supplied_id(self, sql_store):
        parcels = sql_store.collection("parcels")
        supplied = str(uuid.uuid4())

        result = await parcels.insert_one({"_id": supplied, "title": "x"})

        assert result.inserted_id != supplied
        assert await parcels.find_one({"_id": supplied}) is None

    @pytest.mark.asyncio
    async def test_datetimes_stored_as_fixed_width_utc(self, sql_store):
        payments = sql_store.collection("payments")
        # Whole second: the fraction is still written out
        paid_at = datetime(2026, 1, 2, 3, 4, 5, tzinfo=timezone.utc)

        result = await payments.insert_one({"paid_at": paid_at})
        document = await payments.find_one({"_id": result.inserted_id})

        assert document["paid_at"] == "2026-01-02T03:04:05.000000+00:00"

    @pytest.mark.asyncio
    async def test_stored_datetimes_sort_chronologically(self, sql_store):
        payments = sql_store.collection("payments")
        for n, paid_at in enumerate([
            datetime(2026, 1, 2, 3, 4, 5, tzinfo=timezone.utc),
            datetime(2026, 1, 2, 3, 4, 5, 500000, tzinfo=timezone.utc),
            datetime(2026, 1, 2, 3, 4, 4, 999999, tzinfo=timezone.utc),
        ]):
            await payments.insert_one({"paid_at": paid_at, "n": n})

        newest_first = await payments.find(sort=[("paid_at", -1)])

        assert [d["n"] for d in newest_first] == [1, 0, 2]

    @pytest.mark.asyncio
    async def test_find_one_malformed_id_raises(self, sql_store):
        with pytest.raises(ValueError):
            await sql_store.collection("parcels").find_one({"_id": "abc"})

    @pytest.mark.asyncio
    async def test_filters_by_field_types(self, sql_store):
        parcels = sql_store.collection("parcels")
        await parcels.insert_one({"created_by": "a@x.com", "cost": 100, "fragile": True})
        await parcels.insert_one({"created_by": "b@x.com", "cost": 200, "fragile": False})

        by_email = await parcels.find({"created_by": "a@x.com"})
        by_cost = await parcels.find({"cost": 200})
        by_flag = await parcels.find({"fragile": True})

        assert [d["created_by"] for d in by_email] == ["a@x.com"]
        assert [d["created_by"] for d in by_cost] == ["b@x.com"]
        assert [d["created_by"] for d in by_flag] == ["a@x.com"]

    @pytest.mark.asyncio
    async def test_collections_are_isolated(self, sql_store):
        await sql_store.collection("parcels").insert_one({"email": "a@x.com"})
        await sql_store.collection("payments").insert_one({"email": "a@x.com"})

        assert len(await sql_store.collection("parcels").find()) == 1
        assert len(await sql_store.collection("payments").find({"email": "a@x.com"})) == 1
        assert await sql_store.collection("tracking").find() == []

    @pytest.mark.asyncio
    async def test_sort_by_body_field(self, sql_store):
        parcels = sql_store.collection("parcels")
        for day in ("02", "03", "01"):
            await parcels.insert_one({"createdAt": f"2026-01-{day}T00:00:00Z", "day": day})

        descending = await parcels.find(sort=[("createdAt", -1)])
        ascending = await parcels.find(sort=[("createdAt", 1)])

        assert [d["day"] for d in descending] == ["03", "02", "01"]
        assert [d["day"] for d in ascending] == ["01", "02", "03"]

    @pytest.mark.asyncio
    async def test_numeric_field_sorts_numerically(self, sql_store):
        parcels = sql_store.collection("parcels")
        for created_at in (9, 100, 10):
            await parcels.insert_one({"createdAt": created_at})

        newest_first = await parcels.find(sort=[("createdAt", -1)])

        assert [d["createdAt"] for d in newest_first] == [100, 10, 9]

    @pytest.mark.asyncio
    async def test_mixed_types_rank_numbers_before_strings(self, sql_store):
        parcels = sql_store.collection("parcels")
        await parcels.insert_one({"createdAt": "2026-01-01T00:00:00Z", "n": 1})
        await parcels.insert_one({"createdAt": 1767225600000, "n": 2})
        await parcels.insert_one({"n": 3})

        ascending = await parcels.find(sort=[("createdAt", 1)])

        assert [d["n"] for d in ascending] == [3, 2, 1]

    @pytest.mark.asyncio
    async def test_equal_sort_keys_keep_newest_first(self, sql_store):
        parcels = sql_store.collection("parcels")
        await parcels.insert_one({"created_by": "a@x.com", "n": 1})
        await parcels.insert_one({"created_by": "a@x.com", "n": 2})

        result = await parcels.find(sort=[("created_by", 1)])

        assert [d["n"] for d in result] == [2, 1]

    @pytest.mark.asyncio
    async def test_unsorted_find_returns_newest_first(self, sql_store):
        parcels = sql_store.collection("parcels")
        await parcels.insert_one({"n": 1})
        await parcels.insert_one({"n": 2})

        assert [d["n"] for d in await parcels.find()] == [2, 1]


class TestUpdateAndDelete:

    @pytest.mark.asyncio
    async def test_update_merges_fields(self, sql_store):
        parcels = sql_store.collection("parcels")
        inserted = await parcels.insert_one({"title": "gift", "payment_status": "unpaid"})

        result = await parcels.update_one({"_id": inserted.inserted_id}, {"payment_status": "paid"})
        document = await parcels.find_one({"_id": inserted.inserted_id})

        assert (result.matched_count, result.modified_count) == (1, 1)
        assert document["payment_status"] == "paid"
        assert document["title"] == "gift"

    @pytest.mark.asyncio
    async def test_update_with_same_values_modifies_nothing(self, sql_store):
        parcels = sql_store.collection("parcels")
        inserted = await parcels.insert_one({"payment_status": "paid"})

        result = await parcels.update_one({"_id": inserted.inserted_id}, {"payment_status": "paid"})

        assert (result.matched_count, result.modified_count) == (1, 0)

    @pytest.mark.asyncio
    async def test_update_without_match(self, sql_store):
        result = await sql_store.collection("parcels").update_one(
            {"_id": str(uuid.uuid4())}, {"payment_status": "paid"}
        )

        assert (result.matched_count, result.modified_count) == (0, 0)

    @pytest.mark.asyncio
    async def test_delete_counts(self, sql_store):
        parcels = sql_store.collection("parcels")
        inserted = await parcels.insert_one({"title": "gift"})

        first = await parcels.delete_one({"_id": inserted.inserted_id})
        second = await parcels.delete_one({"_id": inserted.inserted_id})

        assert first.deleted_count == 1
        assert second.deleted_count == 0
        assert await parcels.find() == []

    @pytest.mark.asyncio
    async def test_concurrent_deletes_remove_once(self, sql_store):
        parcels = sql_store.collection("parcels")
        inserted = await parcels.insert_one({"title": "gift"})

        results = await asyncio.gather(
            *(parcels.delete_one({"_id": inserted.inserted_id}) for _ in range(5))
        )

        assert sorted(r.deleted_count for r in results) == [0, 0, 0, 0, 1]
        assert await parcels.find() == []


class TestTransactions:

    @pytest.mark.asyncio
    async def test_transaction_commits_all_writes(self, sql_store):
        inserted = await sql_store.collection("parcels").insert_one({"payment_status": "unpaid"})

        async with sql_store.transaction() as tx:
            await tx.collection("parcels").update_one({"_id": inserted.inserted_id}, {"payment_status": "paid"})
            await tx.collection("payments").insert_one({"parcelId": inserted.inserted_id})

        parcel = await sql_store.collection("parcels").find_one({"_id": inserted.inserted_id})
        assert parcel["payment_status"] == "paid"
        assert len(await sql_store.collection("payments").find()) == 1

    @pytest.mark.asyncio
    async def test_transaction_rolls_back_on_error(self, sql_store):
        inserted = await sql_store.collection("parcels").insert_one({"payment_status": "unpaid"})

        with pytest.raises(RuntimeError):
            async with sql_store.transaction() as tx:
                await tx.collection("parcels").update_one({"_id": inserted.inserted_id}, {"payment_status": "paid"})
                await tx.collection("payments").insert_one({"parcelId": inserted.inserted_id})
                raise RuntimeError("abort")

        parcel = await sql_store.collection("parcels").find_one({"_id": inserted.inserted_id})
        assert parcel["payment_status"] == "unpaid"
        assert await sql_store.collection("payments").find() == []


class TestConnectivity:

    @pytest.mark.asyncio
    async def test_ping_connected(self, sql_store):
        assert await sql_store.ping() is True

    @pytest.mark.asyncio
    async def test_ping_unreachable_returns_false(self, tmp_path):
        missing_dir = tmp_path / "missing" / "documents.db"
        store = SQLDocumentStore(create_engine_from_settings(url=f"sqlite+aiosqlite:///{missing_dir}"))

        assert await store.ping() is False
        await store.close()
