"""Authentication endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends

from catalog_service.api.dependencies import get_auth_service
from catalog_service.api.responses import EnvelopeResponse, success
from catalog_service.api.schemas import ErrorResponse, LoginRequest
from catalog_service.application.auth_service import AuthService

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post(
    "/login",
    responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}},
    summary="Log in",
)
async def login(
    request: LoginRequest,
    service: Annotated[AuthService, Depends(get_auth_service)],
) -> EnvelopeResponse:
    """Exchange email and password for a bearer token."""
    result = await service.login(request.email, request.password)
    return success(result.to_dict(), "Login successful")
