"""bb_betting REST endpoints. Every route requires group membership.

POST   /groups/{group_id}/bets                          create bet
PUT    /groups/{group_id}/bets/{bet_id}                 edit title/options
DELETE /groups/{group_id}/bets/{bet_id}                 delete bet
POST   /groups/{group_id}/bets/{bet_id}/wagers          place or replace own wager
POST   /groups/{group_id}/bets/{bet_id}/resolve         set correct option
POST   /groups/{group_id}/bets/{bet_id}/reopen          clear correct option
GET    /groups/{group_id}/stats                         leaderboard
GET    /groups/{group_id}/balances/me                   caller's owed drinks
GET    /groups/{group_id}/distributions                 distribution history
POST   /groups/{group_id}/distributions                 hand out won drinks
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.bb_betting.application.schemas import (
    BetRequest,
    DistributeRequest,
    PlaceWagerRequest,
    ResolveBetRequest,
)
from src.bb_betting.application.service import BettingApplicationService
from src.bb_common.database import get_db_session
from src.bb_common.response import ApiResponse, success_response
from src.bb_gateway.auth.dependencies import CurrentUser, get_current_user

router = APIRouter(prefix="/groups", tags=["betting"])

_service = BettingApplicationService()

_User = Annotated[CurrentUser, Depends(get_current_user)]
_Db = Annotated[AsyncSession, Depends(get_db_session)]


@router.post("/{group_id}/bets", status_code=status.HTTP_201_CREATED)
async def create_bet(
    group_id: str, body: BetRequest, request: Request, current_user: _User, db: _Db
) -> ApiResponse:
    result = await _service.create_bet(
        db, group_id, current_user.user_id, body.title, body.options
    )
    return success_response(result.model_dump(), request)


@router.put("/{group_id}/bets/{bet_id}")
async def edit_bet(
    group_id: str, bet_id: str, body: BetRequest, request: Request, current_user: _User, db: _Db
) -> ApiResponse:
    result = await _service.edit_bet(
        db, group_id, bet_id, current_user.user_id, body.title, body.options
    )
    return success_response(result.model_dump(), request)


@router.delete("/{group_id}/bets/{bet_id}")
async def delete_bet(
    group_id: str, bet_id: str, request: Request, current_user: _User, db: _Db
) -> ApiResponse:
    await _service.delete_bet(db, group_id, bet_id, current_user.user_id)
    return success_response({"bet_id": bet_id, "deleted": True}, request)


@router.post("/{group_id}/bets/{bet_id}/wagers")
async def place_wager(
    group_id: str,
    bet_id: str,
    body: PlaceWagerRequest,
    request: Request,
    current_user: _User,
    db: _Db,
) -> ApiResponse:
    result = await _service.place_wager(
        db,
        group_id,
        bet_id,
        current_user.user_id,
        current_user.username or "",
        body.option_id,
        body.drink_type,
        body.measure_type,
        body.amount,
    )
    return success_response(result.model_dump(), request)


@router.post("/{group_id}/bets/{bet_id}/resolve")
async def resolve_bet(
    group_id: str,
    bet_id: str,
    body: ResolveBetRequest,
    request: Request,
    current_user: _User,
    db: _Db,
) -> ApiResponse:
    result = await _service.resolve_bet(
        db, group_id, bet_id, current_user.user_id, body.option_id
    )
    return success_response(result.model_dump(), request)


@router.post("/{group_id}/bets/{bet_id}/reopen")
async def reopen_bet(
    group_id: str, bet_id: str, request: Request, current_user: _User, db: _Db
) -> ApiResponse:
    result = await _service.reopen_bet(db, group_id, bet_id, current_user.user_id)
    return success_response(result.model_dump(), request)


@router.get("/{group_id}/stats")
async def group_stats(
    group_id: str, request: Request, current_user: _User, db: _Db
) -> ApiResponse:
    result = await _service.compute_group_stats(db, group_id, current_user.user_id)
    return success_response(result.model_dump(), request)


@router.get("/{group_id}/balances/me")
async def my_balance(
    group_id: str, request: Request, current_user: _User, db: _Db
) -> ApiResponse:
    result = await _service.get_balance(db, group_id, current_user.user_id)
    return success_response(result.model_dump(), request)


@router.get("/{group_id}/distributions")
async def list_distributions(
    group_id: str, request: Request, current_user: _User, db: _Db
) -> ApiResponse:
    result = await _service.list_distributions(db, group_id, current_user.user_id)
    return success_response(result.model_dump(), request)


@router.post("/{group_id}/distributions", status_code=status.HTTP_201_CREATED)
async def distribute_drinks(
    group_id: str,
    body: DistributeRequest,
    request: Request,
    current_user: _User,
    db: _Db,
) -> ApiResponse:
    result = await _service.distribute_drinks(
        db,
        group_id,
        current_user.user_id,
        current_user.username,
        [item.to_domain() for item in body.distributions],
    )
    return success_response(result.model_dump(), request)
