from __future__ import annotations

import argparse
import logging
import sys
import threading
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, Callable, Dict, Optional

import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from trial_graph_builder.app.core.errors import DocumentFormatError, GraphBuildError
from trial_graph_builder.app.core.settings import Settings, get_settings
from trial_graph_builder.app.services.pipeline import GraphBuildPipeline

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"


class BuildRequest(BaseModel):
    file_path: str


def create_app(pipeline_factory: Optional[Callable[[], GraphBuildPipeline]] = None) -> FastAPI:
    factory = pipeline_factory or (lambda: GraphBuildPipeline(get_settings()))

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # one pipeline per process: loading the parser models is expensive
        with factory() as pipeline:
            app.state.pipeline = pipeline
            # the annotator and the allocator serve one document at a time
            app.state.build_lock = threading.Lock()
            yield

    app = FastAPI(title="Trial Graph Builder", version="0.1.0", lifespan=lifespan)

    @app.get("/health")
    def health() -> Dict[str, Any]:
        return {"status": "ok"}

    @app.post("/build")
    def build(req: BuildRequest) -> Dict[str, Any]:
        pipeline: GraphBuildPipeline = app.state.pipeline
        try:
            with app.state.build_lock:
                result = pipeline.build_file(req.file_path)
            return result.model_dump(mode="json")
        except DocumentFormatError as e:
            raise HTTPException(status_code=422, detail=str(e))
        except GraphBuildError as e:
            raise HTTPException(status_code=500, detail=str(e))

    return app


app = create_app()


def cli() -> None:
    parser = argparse.ArgumentParser(description="Build parse and dependency graphs from clinical study documents")
    parser.add_argument("paths", nargs="+", help="Documents or directories of .xml/.json documents")
    parser.add_argument("--graph-sink", choices=["json", "neo4j"])
    parser.add_argument("--debug-backend", choices=["json", "mongo", "none"])
    parser.add_argument("--out-dir")
    parser.add_argument("--run-id")
    parser.add_argument("--log-level", default=None)
    args = parser.parse_args()

    load_dotenv()
    settings = Settings()
    if args.graph_sink:
        settings.graph_sink = args.graph_sink
    if args.debug_backend:
        settings.debug_backend = args.debug_backend
    if args.out_dir:
        settings.out_dir = Path(args.out_dir)
    if args.run_id:
        settings.run_id = args.run_id

    logging.basicConfig(level=(args.log_level or settings.log_level).upper(), format=LOG_FORMAT)

    try:
        with GraphBuildPipeline(settings) as pipeline:
            summary = pipeline.build_batch(args.paths)
    except GraphBuildError as e:
        logger.error(f"Cannot start build: {e}")
        sys.exit(2)

    print(summary.model_dump_json(indent=2))
    if summary.failed:
        sys.exit(1)


def serve() -> None:
    load_dotenv()
    logging.basicConfig(level=get_settings().log_level.upper(), format=LOG_FORMAT)
    uvicorn.run("trial_graph_builder.app.main:app", host="0.0.0.0", port=8000)


if __name__ == "__main__":
    cli()
