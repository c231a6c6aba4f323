"""HTTP endpoints for dataset profiling and chat analysis."""

from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from insightdash.graph import analyze_dataset
from insightdash.llm_config import get_llm
from insightdash.models import InvalidDatasetError, validate_dataset
from insightdash.settings import configure_logging, get_settings
from insightdash.tools.representation import profile_dataset

logger = logging.getLogger(__name__)

app = FastAPI(title="insightdash API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)


configure_logging()


# ---- Models ----
class ChatMessage(BaseModel):
    role: str
    content: str


class AnalyzeRequest(BaseModel):
    """Request payload for a dataset question."""

    model_config = ConfigDict(populate_by_name=True)

    messages: list[ChatMessage] = Field(default_factory=list)
    # row and header shapes are checked by validate_dataset so bad input is a 400
    csv_data: Any = Field(default=None, alias="csvData")
    headers: Any = None
    model: Optional[str] = None
    provider: Optional[str] = None
    api_key: Optional[str] = Field(default=None, alias="apiKey")
    chunk_size: Optional[int] = Field(default=None, alias="chunkSize", gt=0)


class ProfileRequest(BaseModel):
    """Request payload for profiling without an LLM call."""

    model_config = ConfigDict(populate_by_name=True)

    csv_data: Any = Field(default=None, alias="csvData")
    headers: Any = None
    chunk_size: Optional[int] = Field(default=None, alias="chunkSize", gt=0)


def _error(status_code: int, message: str, details: Optional[str] = None) -> JSONResponse:
    content = {"error": message}
    if details is not None:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content)


# ---- Routes ----
@app.get("/health")
def health() -> dict:
    return {"status": "ok"}


@app.post("/profile")
def profile(req: ProfileRequest):
    if req.csv_data is None or req.headers is None:
        return _error(400, "CSV data and headers are required")

    chunk_size = req.chunk_size or get_settings().chunk_size
    try:
        processed, representation = profile_dataset(
            req.csv_data,
            req.headers,
            chunk_size,
            mine_full_dataset=get_settings().mine_full_dataset,
        )
    except InvalidDatasetError as exc:
        return _error(400, "Invalid dataset", str(exc))

    return {
        "representation": representation.to_dict(),
        "processedInChunks": processed.processed_in_chunks,
        "numChunks": processed.num_chunks,
        "chunkSize": chunk_size,
    }


@app.post("/analyze-data")
def analyze_data(req: AnalyzeRequest):
    if not req.api_key:
        return _error(400, "API key is required")
    if req.csv_data is None or req.headers is None:
        return _error(400, "CSV data and headers are required")
    try:
        validate_dataset(req.csv_data, req.headers)
    except InvalidDatasetError as exc:
        return _error(400, "Invalid dataset", str(exc))

    settings = get_settings()
    provider = req.provider or settings.llm_provider
    logger.info(
        f"Analyzing {len(req.csv_data)} rows with provider {provider}, "
        f"model {req.model or settings.llm_model or 'default'}"
    )

    try:
        llm = get_llm(
            provider=provider,
            model=req.model or settings.llm_model,
            api_key=req.api_key,
            temperature=settings.temperature,
            max_tokens=settings.max_tokens,
        )
    except ValueError as exc:
        return _error(400, str(exc))

    try:
        result = analyze_dataset(
            llm,
            req.csv_data,
            req.headers,
            [m.model_dump() for m in req.messages],
            chunk_size=req.chunk_size,
        )
    except InvalidDatasetError as exc:
        return _error(400, "Invalid dataset", str(exc))
    except Exception as exc:
        logger.exception("Error analyzing data")
        return _error(500, "Failed to analyze data", str(exc))

    logger.info(f"Analysis completed for {len(req.csv_data)} rows")
    return {"result": result or None}
