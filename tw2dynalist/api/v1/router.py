"""API v1 router aggregator."""

from fastapi import APIRouter

from tw2dynalist.api.v1 import auth, metrics

api_router = APIRouter()

# Metrics and manual sync
api_router.include_router(metrics.router, tags=["metrics"])

# Twitter authorization
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
