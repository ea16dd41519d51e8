from __future__ import annotations

import logging
from typing import Iterable, Optional

from neo4j import GraphDatabase
from neo4j.exceptions import DriverError, Neo4jError

from trial_graph_builder.app.core.errors import StoreUnavailableError
from trial_graph_builder.app.models.graph import BASE_LABEL, NodeRecord, EdgeRecord
from trial_graph_builder.app.services.sinks.base import GraphSink

logger = logging.getLogger(__name__)

def quote(name: str) -> str:
    """Back-tick quote a label or relationship type for inlining into Cypher."""
    return "`" + name.replace("`", "``") + "`"

def label_clause(labels: Iterable[str]) -> str:
    return "".join(":" + quote(l) for l in sorted(set(labels) - {BASE_LABEL}))

class Neo4jGraphSink(GraphSink):
    def __init__(self, uri: str, user: str, password: str, database: Optional[str] = None,
                 create_index: bool = True):
        self.database = database
        try:
            self.driver = GraphDatabase.driver(uri, auth=(user, password))
            self.driver.verify_connectivity()
        except (DriverError, Neo4jError) as e:
            raise StoreUnavailableError(f"Cannot connect to Neo4j at {uri}: {e}") from e
        if create_index:
            self._write(f"CREATE INDEX graph_node_uid IF NOT EXISTS FOR (n:{BASE_LABEL}) ON (n.uid)")

    def close(self) -> None:
        self.driver.close()

    def _write(self, cypher: str, **params) -> None:
        # one short-lived session and transaction per statement
        try:
            with self.driver.session(database=self.database) as session:
                session.execute_write(lambda tx: tx.run(cypher, **params).consume())
        except (DriverError, Neo4jError) as e:
            raise StoreUnavailableError(f"Neo4j write failed: {e}") from e

    def upsert_node(self, node: NodeRecord) -> None:
        # keyed on uid only; nodes are never updated once created
        cypher = f"""
        MERGE (n:{BASE_LABEL} {{uid: $uid}})
        ON CREATE SET n += $props, n{label_clause(node.labels)}
        """
        self._write(cypher, uid=node.uid, props=node.all_properties())

    def upsert_edge(self, edge: EdgeRecord) -> None:
        cypher = f"""
        MATCH (a:{BASE_LABEL} {{uid: $from_uid}})
        MATCH (b:{BASE_LABEL} {{uid: $to_uid}})
        MERGE (a)-[:{quote(edge.rel_type)}]->(b)
        """
        self._write(cypher, from_uid=edge.from_uid, to_uid=edge.to_uid)

    def max_uid(self) -> Optional[int]:
        cypher = f"MATCH (n:{BASE_LABEL}) RETURN max(n.uid) AS max_uid"
        try:
            with self.driver.session(database=self.database) as session:
                return session.execute_read(lambda tx: tx.run(cypher).single()["max_uid"])
        except (DriverError, Neo4jError) as e:
            raise StoreUnavailableError(f"Neo4j read failed: {e}") from e
