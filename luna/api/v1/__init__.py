"""
API routes.
"""

from fastapi import APIRouter

from luna.api.v1 import auth, dreams
from luna.schemas.common import ErrorResponse

_ERRORS = {
    400: {"model": ErrorResponse, "description": "Invalid input"},
    401: {"model": ErrorResponse, "description": "Missing or rejected credentials"},
}

router = APIRouter(responses=_ERRORS)

router.include_router(
    auth.router,
    prefix="/auth",
    tags=["Authentication"],
    responses={429: {"model": ErrorResponse, "description": "Rate limit exceeded"}},
)
router.include_router(dreams.router, prefix="/dreams", tags=["Dreams"])
