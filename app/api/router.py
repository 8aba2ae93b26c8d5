"""
Juni — Main API Router

Aggregates all sub-routers under a single prefix so that ``app.main``
can mount the entire API surface with one ``include_router`` call.
"""

from fastapi import APIRouter

from app.api import companions, families, matching, payouts, visits

router = APIRouter()

router.include_router(matching.router, prefix="/matches", tags=["Matching"])
router.include_router(visits.router, prefix="/visits", tags=["Visits"])
router.include_router(payouts.router, prefix="/payouts", tags=["Payouts"])
router.include_router(families.router, prefix="/families", tags=["Families"])
router.include_router(companions.router, prefix="/admin/companions", tags=["Admin - Companions"])
