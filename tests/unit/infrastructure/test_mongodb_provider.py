"""Unit tests for MongoDB document database provider."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from bson import ObjectId
from pymongo.errors import ServerSelectionTimeoutError


class _AsyncCursor:
    """Minimal stand-in for a Motor cursor."""

    def __init__(self, docs):
        self._docs = list(docs)
        self.sort = MagicMock(return_value=self)
        self.skip = MagicMock(return_value=self)
        self.limit = MagicMock(return_value=self)

    def __aiter__(self):
        return self._gen()

    async def _gen(self):
        for doc in self._docs:
            yield doc


class TestMongoDBDocumentDB:
    """Tests for MongoDBDocumentDB provider.

    These tests verify the ID mapping behavior between domain model 'id'
    and MongoDB's '_id' field.
    """

    @pytest.fixture
    def mock_motor_client(self):
        """Create a mock Motor client."""
        with patch(
            "src.commons.infrastructure.documentdb.mongodb_provider.AsyncIOMotorClient"
        ) as mock_client_class:
            mock_client = MagicMock()
            mock_db = MagicMock()
            mock_collection = MagicMock()

            mock_client.__getitem__ = MagicMock(return_value=mock_db)
            mock_db.__getitem__ = MagicMock(return_value=mock_collection)

            mock_client_class.return_value = mock_client

            yield {
                "client_class": mock_client_class,
                "client": mock_client,
                "db": mock_db,
                "collection": mock_collection,
            }

    @pytest.fixture
    def mongodb_provider(self, mock_motor_client):
        """Create MongoDB provider with mocked client."""
        from src.commons.infrastructure.documentdb.mongodb_provider import (
            MongoDBDocumentDB,
        )

        provider = MongoDBDocumentDB(
            connection_string="mongodb://localhost:27017",
            database_name="test_db",
        )
        provider._db = mock_motor_client["db"]
        provider._client = mock_motor_client["client"]
        return provider

    # =========================================================================
    # Insert Tests
    # =========================================================================

    async def test_insert_uses_id_as_mongodb_id(
        self, mongodb_provider, mock_motor_client
    ):
        collection = mock_motor_client["collection"]
        collection.insert_one = AsyncMock(
            return_value=MagicMock(inserted_id="video-uuid-123")
        )

        document = {"id": "video-uuid-123", "owner_id": "user-1", "status": "inProgress"}

        result = await mongodb_provider.insert("videos", document)

        call_args = collection.insert_one.call_args[0][0]
        assert call_args["_id"] == "video-uuid-123"
        assert "id" not in call_args
        assert result == "video-uuid-123"

    async def test_insert_without_id_field(self, mongodb_provider, mock_motor_client):
        collection = mock_motor_client["collection"]
        mongo_id = ObjectId()
        collection.insert_one = AsyncMock(return_value=MagicMock(inserted_id=mongo_id))

        result = await mongodb_provider.insert("videos", {"owner_id": "user-1"})

        assert result == str(mongo_id)

    async def test_insert_does_not_modify_original_document(
        self, mongodb_provider, mock_motor_client
    ):
        collection = mock_motor_client["collection"]
        collection.insert_one = AsyncMock(return_value=MagicMock(inserted_id="x"))

        original_document = {"id": "x", "title": "Test"}
        await mongodb_provider.insert("videos", original_document)

        assert "id" in original_document
        assert "_id" not in original_document

    # =========================================================================
    # Find Tests
    # =========================================================================

    async def test_find_by_id_maps_id_back(self, mongodb_provider, mock_motor_client):
        collection = mock_motor_client["collection"]
        collection.find_one = AsyncMock(
            return_value={"_id": "video-uuid-123", "title": "Test Video"}
        )

        result = await mongodb_provider.find_by_id("videos", "video-uuid-123")

        collection.find_one.assert_called_once_with(
            {"_id": "video-uuid-123"}, projection=None
        )
        assert result == {"id": "video-uuid-123", "title": "Test Video"}

    async def test_find_by_id_passes_projection(
        self, mongodb_provider, mock_motor_client
    ):
        collection = mock_motor_client["collection"]
        collection.find_one = AsyncMock(return_value={"_id": "v1", "status": "error"})

        await mongodb_provider.find_by_id("videos", "v1", projection=["status"])

        collection.find_one.assert_called_once_with({"_id": "v1"}, projection=["status"])

    async def test_find_by_id_not_found(self, mongodb_provider, mock_motor_client):
        collection = mock_motor_client["collection"]
        collection.find_one = AsyncMock(return_value=None)

        assert await mongodb_provider.find_by_id("videos", "missing") is None

    async def test_find_applies_sort_skip_limit(
        self, mongodb_provider, mock_motor_client
    ):
        collection = mock_motor_client["collection"]
        cursor = _AsyncCursor([{"_id": "a", "owner_id": "u"}, {"_id": "b", "owner_id": "u"}])
        collection.find = MagicMock(return_value=cursor)

        result = await mongodb_provider.find(
            "videos",
            {"owner_id": "u"},
            skip=5,
            limit=2,
            sort=[("created_at", -1)],
        )

        collection.find.assert_called_once_with({"owner_id": "u"})
        cursor.sort.assert_called_once_with([("created_at", -1)])
        cursor.skip.assert_called_once_with(5)
        cursor.limit.assert_called_once_with(2)
        assert [doc["id"] for doc in result] == ["a", "b"]

    async def test_find_translates_id_filter(self, mongodb_provider, mock_motor_client):
        collection = mock_motor_client["collection"]
        collection.find = MagicMock(return_value=_AsyncCursor([]))

        await mongodb_provider.find("videos", {"id": "v1"})

        collection.find.assert_called_once_with({"_id": "v1"})

    # =========================================================================
    # Update Tests
    # =========================================================================

    async def test_update_sets_fields(self, mongodb_provider, mock_motor_client):
        collection = mock_motor_client["collection"]
        collection.update_one = AsyncMock(return_value=MagicMock(matched_count=1))

        result = await mongodb_provider.update("videos", "v1", {"title": "New"})

        collection.update_one.assert_called_once_with(
            {"_id": "v1"}, {"$set": {"title": "New"}}
        )
        assert result is True

    async def test_update_unmatched_returns_false(
        self, mongodb_provider, mock_motor_client
    ):
        collection = mock_motor_client["collection"]
        collection.update_one = AsyncMock(return_value=MagicMock(matched_count=0))

        assert await mongodb_provider.update("videos", "v1", {"title": "x"}) is False

    async def test_update_where_includes_conditions(
        self, mongodb_provider, mock_motor_client
    ):
        collection = mock_motor_client["collection"]
        collection.update_one = AsyncMock(return_value=MagicMock(matched_count=1))

        result = await mongodb_provider.update_where(
            "videos",
            "v1",
            {"status": "inProgress"},
            {"status": "uploaded"},
        )

        collection.update_one.assert_called_once_with(
            {"status": "inProgress", "_id": "v1"},
            {"$set": {"status": "uploaded"}},
        )
        assert result is True

    async def test_update_where_condition_not_met(
        self, mongodb_provider, mock_motor_client
    ):
        collection = mock_motor_client["collection"]
        collection.update_one = AsyncMock(return_value=MagicMock(matched_count=0))

        result = await mongodb_provider.update_where(
            "videos", "v1", {"status": "inProgress"}, {"status": "error"}
        )

        assert result is False

    # =========================================================================
    # Delete / Exists / Count Tests
    # =========================================================================

    async def test_delete(self, mongodb_provider, mock_motor_client):
        collection = mock_motor_client["collection"]
        collection.delete_one = AsyncMock(return_value=MagicMock(deleted_count=1))

        assert await mongodb_provider.delete("videos", "v1") is True
        collection.delete_one.assert_called_once_with({"_id": "v1"})

    async def test_delete_missing(self, mongodb_provider, mock_motor_client):
        collection = mock_motor_client["collection"]
        collection.delete_one = AsyncMock(return_value=MagicMock(deleted_count=0))

        assert await mongodb_provider.delete("videos", "v1") is False

    async def test_exists_uses_limited_count(self, mongodb_provider, mock_motor_client):
        collection = mock_motor_client["collection"]
        collection.count_documents = AsyncMock(return_value=1)

        assert await mongodb_provider.exists("videos", "v1") is True
        collection.count_documents.assert_called_once_with({"_id": "v1"}, limit=1)

    async def test_count_with_filters(self, mongodb_provider, mock_motor_client):
        collection = mock_motor_client["collection"]
        collection.count_documents = AsyncMock(return_value=3)

        assert await mongodb_provider.count("videos", {"owner_id": "u"}) == 3

    async def test_count_without_filters_uses_estimate(
        self, mongodb_provider, mock_motor_client
    ):
        collection = mock_motor_client["collection"]
        collection.estimated_document_count = AsyncMock(return_value=42)

        assert await mongodb_provider.count("videos") == 42

    # =========================================================================
    # Health Tests
    # =========================================================================

    async def test_health_check_healthy(self, mongodb_provider, mock_motor_client):
        mock_motor_client["client"].admin.command = AsyncMock(return_value={"ok": 1})

        health = await mongodb_provider.health_check()

        assert health.healthy is True
        assert health.details == {"database": "test_db"}

    async def test_health_check_unhealthy(self, mongodb_provider, mock_motor_client):
        mock_motor_client["client"].admin.command = AsyncMock(
            side_effect=ServerSelectionTimeoutError("no servers")
        )

        health = await mongodb_provider.health_check()

        assert health.healthy is False
        assert "no servers" in (health.message or "")
