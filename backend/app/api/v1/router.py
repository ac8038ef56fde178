from fastapi import APIRouter

from app.api.v1 import deadlines

api_router = APIRouter()

api_router.include_router(deadlines.router, prefix="/deadlines", tags=["deadlines"])
