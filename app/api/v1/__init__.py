"""
API version 1 router configuration.
"""

from fastapi import APIRouter

from app.api.v1 import applications

api_router = APIRouter()

# Include application review routes
api_router.include_router(applications.router, prefix="/applications", tags=["applications"])
