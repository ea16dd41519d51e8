from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field

# -------------------------------------------------------------------------
# Common Types
# -------------------------------------------------------------------------

BuildStatus = Literal["success", "failed"]
FailureCategory = Literal["document_format", "annotation", "store_unavailable", "other"]


class FailureInfo(BaseModel):
    category: FailureCategory
    message: str


class SectionSummary(BaseModel):
    label: str
    sentences: int = 0


class WriteSummary(BaseModel):
    nodes_upserted: int = 0
    edges_upserted: int = 0


# -------------------------------------------------------------------------
# Reports
# -------------------------------------------------------------------------

class BuildResult(BaseModel):
    """
    Outcome of building the graph for one document.
    """
    document_name: str
    file_path: Optional[str] = None
    document_id: Optional[str] = None

    status: BuildStatus = "success"
    sections: List[SectionSummary] = []
    write_summary: WriteSummary = Field(default_factory=WriteSummary)
    failure: Optional[FailureInfo] = None

    started_at: datetime = Field(default_factory=datetime.utcnow)
    finished_at: Optional[datetime] = None

    model_config = ConfigDict(extra="ignore")


class BatchSummary(BaseModel):
    run_id: str
    started_at: datetime = Field(default_factory=datetime.utcnow)
    finished_at: Optional[datetime] = None

    results: List[BuildResult] = []

    @computed_field
    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.results if r.status == "success")

    @computed_field
    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if r.status == "failed")

    model_config = ConfigDict(extra="ignore")
