"""Lookup backend API: OCR + card lookup for a capture, and direct lookup by name."""

import logging
from functools import lru_cache

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from card_lookup.core.config import Settings, get_config
from card_lookup.lookup.pipeline import LookupPipeline, build_pipeline
from card_lookup.models.entities import CardRecord, Failed, Found, LookupResult

_log = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def _get_settings() -> Settings:
    return get_config()


@lru_cache(maxsize=1)
def _get_pipeline() -> LookupPipeline:
    return build_pipeline(_get_settings())


app = FastAPI(title="Card Lookup")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["POST"],
    allow_headers=["Content-Type"],
)


class ImageLookupIn(BaseModel):
    image: str | None = None


class NameLookupIn(BaseModel):
    name: str | None = None


class LookupOut(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    found: bool
    card: CardRecord | None = None
    detected_name: str | None = None


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _lookup_response(result: LookupResult, *, include_detected_name: bool) -> JSONResponse:
    if isinstance(result, Failed):
        _log.error("Lookup failed (%s): %s", result.kind.value, result.reason)
        return _error(500, result.reason)
    if isinstance(result, Found):
        out = LookupOut(
            found=True,
            card=result.card,
            detected_name=result.detected_name if include_detected_name else None,
        )
    else:
        out = LookupOut(found=False)
    return JSONResponse(content=out.model_dump(by_alias=True, exclude_none=True))


@app.post("/lookup")
async def api_lookup(
    body: ImageLookupIn | None = None,
    settings: Settings = Depends(_get_settings),
    pipeline: LookupPipeline = Depends(_get_pipeline),
) -> JSONResponse:
    if body is None or not body.image:
        return _error(400, "Missing image")
    if not pipeline.validate(body.image):
        return _error(400, "Invalid image")
    if settings.ocr_analyzer != "mock" and not settings.ocr_api_key:
        _log.error("OCR credential is not configured")
        return _error(500, "Server config error")
    result = await pipeline.lookup_image(body.image)
    return _lookup_response(result, include_detected_name=True)


@app.post("/lookup-by-name")
async def api_lookup_by_name(
    body: NameLookupIn | None = None,
    pipeline: LookupPipeline = Depends(_get_pipeline),
) -> JSONResponse:
    if body is None or not body.name:
        return _error(400, "Bad request")
    result = await pipeline.lookup_name(body.name)
    return _lookup_response(result, include_detected_name=False)
