"""
API v1 router aggregation.
"""
from fastapi import APIRouter
from app.api.v1.endpoints import gym

api_router = APIRouter()

# Note: Each router already defines its own prefix, so we don't add another one here
api_router.include_router(gym.router)
