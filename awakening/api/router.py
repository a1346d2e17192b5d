"""
Neuropul Awakening: Main API Router

Aggregates all sub-routers under a single prefix so that ``awakening.main``
can mount the entire API surface with one ``include_router`` call.
"""

from fastapi import APIRouter

from awakening.api import awakening

router = APIRouter()

router.include_router(awakening.router, prefix="/awakening", tags=["Awakening"])
