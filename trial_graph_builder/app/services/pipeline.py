from __future__ import annotations

import logging
import uuid
from datetime import datetime
from pathlib import Path
from typing import Any, Iterable, List, Optional

from trial_graph_builder.app.core.errors import GraphBuildError
from trial_graph_builder.app.core.settings import Settings
from trial_graph_builder.app.models.reports import BatchSummary, BuildResult, FailureInfo, SectionSummary

# Services
from trial_graph_builder.app.services.annotation.base import Annotator
from trial_graph_builder.app.services.canonical.service import DocumentParser, extract_document_id
from trial_graph_builder.app.services.emitter import GraphEmitter
from trial_graph_builder.app.services.identifiers import IdentifierAllocator
from trial_graph_builder.app.services.segmenter import TextSegmenter
from trial_graph_builder.app.services.sinks.base import GraphSink, DebugStore
from trial_graph_builder.app.services.sinks.factory import create_graph_sink, create_debug_store
from trial_graph_builder.app.services.walker import DocumentWalker

logger = logging.getLogger(__name__)

DOCUMENT_SUFFIXES = (".xml", ".json")


def find_documents(paths: Iterable[str]) -> List[Path]:
    files: List[Path] = []
    for raw in paths:
        p = Path(raw)
        if p.is_dir():
            files.extend(sorted(f for f in p.rglob("*") if f.is_file() and f.suffix.lower() in DOCUMENT_SUFFIXES))
        else:
            files.append(p)
    return files


class GraphBuildPipeline:
    """
    Batch driver. Owns the identifier allocator and the long-lived handles to
    the annotator and the stores; use it as a context manager so that they are
    released on every exit path.
    """

    def __init__(
        self,
        settings: Settings,
        annotator: Optional[Annotator] = None,
        graph: Optional[GraphSink] = None,
        debug: Optional[DebugStore] = None,
    ):
        self.settings = settings
        self.settings.ensure_out_dirs()
        self.run_id = settings.run_id or str(uuid.uuid4())

        self.parser = DocumentParser()
        self.segmenter = TextSegmenter(settings.exclusion_marker)

        if annotator is None:
            from trial_graph_builder.app.services.annotation.stanza_annotator import StanzaAnnotator
            annotator = StanzaAnnotator.from_settings(settings)
        self.annotator = annotator

        self.graph = graph if graph is not None else create_graph_sink(settings)
        try:
            self.debug = debug if debug is not None else create_debug_store(settings)
            self.allocator = IdentifierAllocator(self._first_uid())
        except Exception:
            self.graph.close()
            raise

    def _first_uid(self) -> int:
        start = self.settings.uid_start
        if self.settings.resume_uids:
            highest = self.graph.max_uid()
            if highest is not None and highest >= start:
                logger.info(f"Graph store already holds uids up to {highest}; continuing from {highest + 1}")
                start = highest + 1
        return start

    def close(self) -> None:
        try:
            self.graph.close()
        finally:
            try:
                self.debug.close()
            finally:
                self.annotator.close()

    def __enter__(self) -> "GraphBuildPipeline":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ------------------------------------------------------------------

    def build_document(self, document: Any, document_name: str, file_path: Optional[str] = None) -> BuildResult:
        """
        Build the graph for one parsed document. Errors propagate; nodes already
        written stay in the store.
        """
        result = BuildResult(document_name=document_name, file_path=file_path)
        self._build(document, result)
        return result

    def _build(self, document: Any, result: BuildResult) -> None:
        result.document_id = extract_document_id(document, self.settings.document_id_path)
        logger.info(f"Building graph for {result.document_id} ({result.document_name})")

        emitter = GraphEmitter(self.graph, self.allocator, result.document_id)
        walker = DocumentWalker(
            self.segmenter,
            self.annotator,
            emitter,
            skip_keys=self.settings.skip_keys,
            criteria_key=self.settings.criteria_key,
            criteria_text_key=self.settings.criteria_text_key,
            prose_keys=self.settings.prose_keys,
        )
        # a failed walk still reports what it wrote
        result.write_summary = emitter.summary
        sections = walker.walk(document)

        self.debug.write(result.document_name, result.document_id, document, walker.annotations)

        result.sections = [SectionSummary(label=s.label, sentences=len(s.sentences)) for s in sections]
        result.finished_at = datetime.utcnow()
        logger.info(
            f"{result.document_id}: {len(sections)} sections, "
            f"{result.write_summary.nodes_upserted} nodes, {result.write_summary.edges_upserted} edges"
        )

    def build_file(self, file_path: str) -> BuildResult:
        document = self.parser.parse_file(file_path)
        return self.build_document(document, Path(file_path).name, file_path=file_path)

    def build_batch(self, paths: Iterable[str]) -> BatchSummary:
        files = find_documents(paths)
        summary = BatchSummary(run_id=self.run_id)
        logger.info(f"Found {len(files)} documents to build (Run ID: {self.run_id})")

        for i, fpath in enumerate(files):
            result = BuildResult(document_name=fpath.name, file_path=str(fpath))
            try:
                self._build(self.parser.parse_file(str(fpath)), result)
                logger.info(f"[{i + 1}/{len(files)}] SUCCESS {fpath.name}")
            except GraphBuildError as e:
                logger.error(f"[{i + 1}/{len(files)}] FAILED {fpath.name}: {e}")
                self._mark_failed(result, e.category, str(e))
            except Exception as e:
                logger.error(f"[{i + 1}/{len(files)}] EXCEPTION {fpath.name}: {type(e).__name__}: {e}")
                self._mark_failed(result, "other", f"{type(e).__name__}: {e}")
            summary.results.append(result)

        summary.finished_at = datetime.utcnow()
        logger.info(f"Total: {len(files)}, Success: {summary.succeeded}, Failed: {summary.failed}")
        return summary

    @staticmethod
    def _mark_failed(result: BuildResult, category: str, message: str) -> None:
        result.status = "failed"
        result.failure = FailureInfo(category=category, message=message)
        result.finished_at = datetime.utcnow()
