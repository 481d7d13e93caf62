from typing import Any, Dict, List, Sequence

from pymongo import MongoClient
from pymongo.collation import Collation
from pymongo.errors import ConfigurationError, PyMongoError

from fmea_bot.config import Settings
from fmea_bot.constants import (
    COLLATION_LOCALE,
    COLLATION_STRENGTH,
    MONGODB_CONNECT_TIMEOUT_MS,
    MONGODB_SERVER_SELECTION_TIMEOUT_MS,
)
from fmea_bot.logger import logger
from fmea_bot.models import SEARCH_FIELDS, Record
from fmea_bot.utils import substring_pattern


def build_phrase_pipeline(
    phrase: str,
    fields: Sequence[str],
    limit: int,
    index: str,
) -> List[Dict[str, Any]]:
    """
    Aggregation pipeline for the Atlas Search phrase lookup.

    The $search stage gives recall across all fields; the following stages
    keep only documents where some field, lower-cased, equals the lower-cased
    phrase exactly.
    """
    aliases = {field: f"_lc_{field}" for field in fields}
    return [
        {
            "$search": {
                "index": index,
                "phrase": {"query": phrase, "path": list(fields), "slop": 0},
            }
        },
        {
            "$addFields": {
                "_kw": phrase.lower(),
                **{
                    alias: {"$toLower": {"$ifNull": [f"${field}", ""]}}
                    for field, alias in aliases.items()
                },
            }
        },
        {
            "$match": {
                "$expr": {
                    "$or": [{"$eq": [f"${alias}", "$_kw"]} for alias in aliases.values()]
                }
            }
        },
        {"$project": {"_kw": 0, **{alias: 0 for alias in aliases.values()}}},
        {"$limit": limit},
    ]


class KnowledgeStore:
    """
    Read-only access to the FMEA collection.

    Each lookup returns plain Records; errors from the driver propagate so
    the caller decides what a failed lookup means.
    """

    def __init__(self, client: MongoClient, collection, search_index: str):
        self.client = client
        self.collection = collection
        self.search_index = search_index

    def phrase_search(self, phrase: str, limit: int, fields: Sequence[str] = SEARCH_FIELDS) -> List[Record]:
        pipeline = build_phrase_pipeline(phrase, fields, limit, self.search_index)
        return [Record.from_document(doc) for doc in self.collection.aggregate(pipeline)]

    def find_exact(self, value: str, limit: int, fields: Sequence[str] = SEARCH_FIELDS) -> List[Record]:
        query = {"$or": [{field: value} for field in fields]}
        collation = Collation(locale=COLLATION_LOCALE, strength=COLLATION_STRENGTH)
        cursor = self.collection.find(query, collation=collation).limit(limit)
        return [Record.from_document(doc) for doc in cursor]

    def find_substring(self, value: str, limit: int, fields: Sequence[str] = SEARCH_FIELDS) -> List[Record]:
        pattern = substring_pattern(value)
        query = {"$or": [{field: {"$regex": pattern, "$options": "i"}} for field in fields]}
        cursor = self.collection.find(query).limit(limit)
        return [Record.from_document(doc) for doc in cursor]

    def close(self) -> None:
        self.client.close()


def connect_store(settings: Settings) -> KnowledgeStore:
    """
    Connect to MongoDB and return a store over the FMEA collection.

    Raises:
        ConfigurationError: If DATABASE_URL is not set
        PyMongoError: If the server cannot be reached
    """
    if not settings.database_url:
        raise ConfigurationError("DATABASE_URL environment variable is not set")

    logger.info("[DB] connecting...")
    client = MongoClient(
        settings.database_url,
        serverSelectionTimeoutMS=MONGODB_SERVER_SELECTION_TIMEOUT_MS,
        connectTimeoutMS=MONGODB_CONNECT_TIMEOUT_MS,
    )
    try:
        # Test the connection
        client.admin.command("ping")
    except PyMongoError:
        client.close()
        raise

    db = client[settings.db_name]
    logger.info("[DB] connected to %s", db.name)
    return KnowledgeStore(client, db[settings.collection_name], settings.search_index)
