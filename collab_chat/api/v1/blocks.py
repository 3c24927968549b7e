"""
User blocking API routes.
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from collab_chat.core.database import get_db
from collab_chat.core.user_directory import UserDirectoryClient
from collab_chat.dependencies import get_current_user, get_user_directory
from collab_chat.schemas.block import (
    BlockCreate,
    BlockListResponse,
    BlockResponse,
    BlockStatusResponse,
)
from collab_chat.services.block_service import BlockService

router = APIRouter()


@router.get(
    "",
    response_model=BlockListResponse,
    summary="List blocked users"
)
async def list_blocked_users(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    directory: UserDirectoryClient = Depends(get_user_directory)
):
    service = BlockService(db, directory)
    return BlockListResponse(blocked_user_ids=await service.blocked_user_ids(current_user["id"]))


@router.post(
    "",
    response_model=BlockResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Block a user",
    description="Blocking an already blocked user returns the existing block."
)
async def block_user(
    body: BlockCreate,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    directory: UserDirectoryClient = Depends(get_user_directory)
):
    service = BlockService(db, directory)
    block = await service.block(current_user["id"], body.user_id)
    return BlockResponse.model_validate(block)


@router.get(
    "/{user_id}",
    response_model=BlockStatusResponse,
    summary="Check whether you block a user"
)
async def get_block_status(
    user_id: str,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    directory: UserDirectoryClient = Depends(get_user_directory)
):
    service = BlockService(db, directory)
    return BlockStatusResponse(
        user_id=user_id,
        is_blocked=await service.is_blocked(current_user["id"], user_id)
    )


@router.delete(
    "/{user_id}",
    response_model=BlockStatusResponse,
    summary="Unblock a user"
)
async def unblock_user(
    user_id: str,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    directory: UserDirectoryClient = Depends(get_user_directory)
):
    service = BlockService(db, directory)
    await service.unblock(current_user["id"], user_id)
    return BlockStatusResponse(user_id=user_id, is_blocked=False)
