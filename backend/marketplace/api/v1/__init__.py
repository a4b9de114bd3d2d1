"""API v1 router aggregation."""

from fastapi import APIRouter

from marketplace.api.v1.jobs import router as jobs_router

router = APIRouter(prefix="/api/v1")

router.include_router(jobs_router)
