from __future__ import annotations

from pathlib import Path
from typing import List, Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

GraphSinkType = Literal["neo4j", "json"]
DebugBackend = Literal["json", "mongo", "none"]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Backends
    graph_sink: GraphSinkType = "neo4j"
    debug_backend: DebugBackend = "json"

    # Paths
    # defaulted to relative paths from this file if not set in env
    out_dir: Path = Path(__file__).resolve().parents[2] / "data" / "out"

    # Neo4j
    neo4j_uri: str = "bolt://localhost:7687"
    neo4j_user: str = "neo4j"
    neo4j_password: str = "password"
    neo4j_database: Optional[str] = None
    neo4j_create_index: bool = True

    # Mongo (debug records)
    mongo_uri: str = "mongodb://localhost:27017"
    mongo_db: str = "trial_graph"

    # Annotation
    stanza_lang: str = "en"
    stanza_processors: str = "tokenize,pos,lemma,constituency,depparse"
    stanza_use_gpu: bool = False
    stanza_download: bool = False
    stanza_split_semicolons: bool = True

    # Document layout
    document_id_path: str = "clinical_study.id_info.nct_id"
    skip_keys: List[str] = ["brief_summary"]
    criteria_key: str = "criteria"
    criteria_text_key: str = "textblock"
    prose_keys: List[str] = ["textblock", "description"]
    exclusion_marker: str = "Exclusion Criteria"

    # Identifiers
    uid_start: int = 0
    resume_uids: bool = True

    # Run metadata
    run_id: str = ""
    log_level: str = "INFO"

    @property
    def debug_dir(self) -> Path:
        return self.out_dir / "debug"

    def ensure_out_dirs(self) -> None:
        # Only create directories if using JSON backends
        if self.graph_sink == "json":
            self.out_dir.mkdir(parents=True, exist_ok=True)
        if self.debug_backend == "json":
            self.debug_dir.mkdir(parents=True, exist_ok=True)


def get_settings() -> Settings:
    return Settings()
