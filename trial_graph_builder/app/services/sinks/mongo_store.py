from __future__ import annotations
from typing import Any, Dict
from datetime import datetime

from pymongo import MongoClient
from pymongo.errors import PyMongoError

from trial_graph_builder.app.core.errors import StoreUnavailableError
from trial_graph_builder.app.services.sinks.base import DebugStore

class MongoDebugStore(DebugStore):
    def __init__(self, mongo_uri: str, db_name: str):
        self.client = MongoClient(mongo_uri)
        self.db = self.client[db_name]
        self.col_docs = self.db["documents"]
        self.col_annotations = self.db["annotations"]

    def close(self) -> None:
        self.client.close()

    def write(self, document_name: str, document_id: str, document: Any, annotations: Dict[str, Any]) -> None:
        now = datetime.utcnow()
        try:
            # Upsert by document_id
            self.col_docs.replace_one(
                {"document_id": document_id},
                {"document_id": document_id, "document_name": document_name, "data": document, "updated_at": now},
                upsert=True
            )
            self.col_annotations.replace_one(
                {"document_id": document_id},
                {"document_id": document_id, "document_name": document_name, "sections": annotations, "updated_at": now},
                upsert=True
            )
        except PyMongoError as e:
            raise StoreUnavailableError(f"MongoDB write failed: {e}") from e
