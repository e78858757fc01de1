# File: backend/app/api/v1/parsers.py
# Version: v0.1.0
"""
Registered parser listing.
"""
from __future__ import annotations

from typing import List

from fastapi import APIRouter

from backend.app.core.annotation.pipeline import list_parsers
from backend.app.schemas.dataset import ParserSummaryOut

router = APIRouter(tags=["parsers"])


@router.get("/parsers", response_model=List[ParserSummaryOut])
def read_parsers() -> List[dict]:
    return [s.to_dict() for s in list_parsers()]
