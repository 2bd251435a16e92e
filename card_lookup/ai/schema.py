"""Pydantic data contracts for text recognizers."""

from pydantic import BaseModel


class ModelCard(BaseModel):
    """Metadata identifying an OCR/vision model."""

    name: str
    version: str
