"""User Routes: API key management and usage statistics for the signed-in user."""

import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import require_user_id
from app.infrastructure.database import get_db
from app.schemas.user import ApiKeyResponse, UserProfileUpdate
from app.services.users import get_user, rotate_api_key, usage_stats

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/user", tags=["user"])


@router.get("/api-key")
async def read_api_key(
    user_id: str = Depends(require_user_id),
    db: AsyncSession = Depends(get_db),
):
    user = await get_user(db, user_id)
    return ApiKeyResponse(api_key=user.api_key if user else None).model_dump(
        by_alias=True, exclude={"message"},
    )


@router.post("/api-key")
async def create_api_key(
    profile: UserProfileUpdate | None = None,
    user_id: str = Depends(require_user_id),
    db: AsyncSession = Depends(get_db),
):
    profile = profile or UserProfileUpdate()
    user = await rotate_api_key(db, user_id, profile.email, profile.name)
    logger.info("API key rotated")
    return ApiKeyResponse(
        api_key=user.api_key, message="API key generada correctamente",
    ).model_dump(by_alias=True)


@router.get("/usage-stats")
async def read_usage_stats(
    days: int = Query(30, ge=1, le=365),
    detailed: bool = False,
    user_id: str = Depends(require_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await usage_stats(db, user_id, days=days, detailed=detailed)
