from __future__ import annotations


class GraphBuildError(Exception):
    """Base class for failures that abort the build of a single document."""

    category = "other"


class DocumentFormatError(GraphBuildError):
    """The document could not be parsed or lacks a required field."""

    category = "document_format"


class AnnotationError(GraphBuildError):
    """The annotation pipeline produced no usable result for a text section."""

    category = "annotation"


class StoreUnavailableError(GraphBuildError):
    """The graph (or debug) store could not be reached or rejected a call."""

    category = "store_unavailable"
