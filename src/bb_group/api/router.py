"""bb_group REST endpoints.

POST   /groups                               create (caller becomes owner)
GET    /groups/{group_id}                    group with members and bets
DELETE /groups/{group_id}                    owner only
POST   /groups/{group_id}/members            add a member
DELETE /groups/{group_id}/members/{user_id}  owner only
POST   /groups/{group_id}/leave              leave (not the owner)
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.bb_common.database import get_db_session
from src.bb_common.response import ApiResponse, success_response
from src.bb_gateway.auth.dependencies import CurrentUser, get_current_user
from src.bb_group.application.schemas import AddMemberRequest, CreateGroupRequest
from src.bb_group.application.service import GroupApplicationService

router = APIRouter(prefix="/groups", tags=["groups"])

_service = GroupApplicationService()

_User = Annotated[CurrentUser, Depends(get_current_user)]
_Db = Annotated[AsyncSession, Depends(get_db_session)]


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_group(
    body: CreateGroupRequest, request: Request, current_user: _User, db: _Db
) -> ApiResponse:
    result = await _service.create_group(
        db, current_user.user_id, current_user.username, body.name
    )
    return success_response(result.model_dump(), request)


@router.get("/{group_id}")
async def get_group(group_id: str, request: Request, current_user: _User, db: _Db) -> ApiResponse:
    result = await _service.get_group(db, group_id, current_user.user_id)
    return success_response(result.model_dump(), request)


@router.delete("/{group_id}")
async def delete_group(
    group_id: str, request: Request, current_user: _User, db: _Db
) -> ApiResponse:
    await _service.delete_group(db, group_id, current_user.user_id)
    return success_response({"group_id": group_id, "deleted": True}, request)


@router.post("/{group_id}/members", status_code=status.HTTP_201_CREATED)
async def add_member(
    group_id: str, body: AddMemberRequest, request: Request, current_user: _User, db: _Db
) -> ApiResponse:
    result = await _service.add_member(
        db, group_id, current_user.user_id, body.user_id, body.username
    )
    return success_response(result.model_dump(), request)


@router.delete("/{group_id}/members/{user_id}")
async def remove_member(
    group_id: str, user_id: str, request: Request, current_user: _User, db: _Db
) -> ApiResponse:
    await _service.remove_member(db, group_id, current_user.user_id, user_id)
    return success_response({"group_id": group_id, "user_id": user_id, "removed": True}, request)


@router.post("/{group_id}/leave")
async def leave_group(
    group_id: str, request: Request, current_user: _User, db: _Db
) -> ApiResponse:
    await _service.leave_group(db, group_id, current_user.user_id)
    return success_response({"group_id": group_id, "left": True}, request)
