"""
api/routes/itinerary.py
------------------------
POST /v1/itinerary/generate

Validates the trip skeleton, runs the itinerary generator against the
configured location and weather sources, and returns the itinerary JSON.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from schemas.trip import TripBuilderData
from modules.planning.itinerary_generator import generate_itinerary

logger = logging.getLogger(__name__)

router = APIRouter()


# ── Request schema ─────────────────────────────────────────────────────────────

class GenerateRequest(BaseModel):
    trip: TripBuilderData
    favorite_ids: list[str] = Field(default_factory=list, description="Saved location ids to include")
    seed: Optional[int] = Field(None, description="Makes day ids reproducible")


# ── Endpoint ───────────────────────────────────────────────────────────────────

@router.post("/generate", summary="Generate a day-by-day itinerary")
async def generate(req: GenerateRequest) -> dict:
    """
    Returns {"itinerary": {...}}. Sparse location data yields shorter days,
    not an error; a failing location source yields 500.
    """
    try:
        itinerary = await generate_itinerary(
            req.trip,
            favorite_ids=req.favorite_ids,
            seed=req.seed,
        )
    except Exception as exc:
        logger.exception("Itinerary generation failed")
        raise HTTPException(status_code=500, detail=f"Generation error: {exc}") from exc

    return {"itinerary": itinerary.to_dict()}
