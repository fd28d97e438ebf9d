from fastapi import APIRouter
from app.api.v2 import (
    surveys,
    responses,
    generation,
)

api_router = APIRouter()

# Include all v2 routers
api_router.include_router(surveys.router, prefix="/surveys", tags=["surveys"])
api_router.include_router(responses.router, prefix="/responses", tags=["responses"])
api_router.include_router(generation.router, prefix="/generate", tags=["generation"])
