from __future__ import annotations
from typing import Tuple

from trial_graph_builder.app.core.settings import Settings
from trial_graph_builder.app.services.sinks.base import GraphSink, DebugStore, NullDebugStore
from trial_graph_builder.app.services.sinks.json_store import JsonGraphSink, JsonDebugStore

def create_graph_sink(settings: Settings) -> GraphSink:
    if settings.graph_sink == "json":
        return JsonGraphSink(settings.out_dir)

    from trial_graph_builder.app.services.sinks.neo4j_sink import Neo4jGraphSink
    return Neo4jGraphSink(
        uri=settings.neo4j_uri,
        user=settings.neo4j_user,
        password=settings.neo4j_password,
        database=settings.neo4j_database,
        create_index=settings.neo4j_create_index,
    )

def create_debug_store(settings: Settings) -> DebugStore:
    if settings.debug_backend == "mongo":
        from trial_graph_builder.app.services.sinks.mongo_store import MongoDebugStore
        return MongoDebugStore(settings.mongo_uri, settings.mongo_db)
    if settings.debug_backend == "json":
        return JsonDebugStore(settings.debug_dir)
    return NullDebugStore()

def create_sinks(settings: Settings) -> Tuple[GraphSink, DebugStore]:
    return create_graph_sink(settings), create_debug_store(settings)
