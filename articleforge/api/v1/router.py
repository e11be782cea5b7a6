"""API v1 router aggregator."""

from fastapi import APIRouter

from articleforge.api.v1 import pipeline

api_router = APIRouter()

api_router.include_router(pipeline.router, prefix="/articles/pipeline", tags=["Pipeline"])
