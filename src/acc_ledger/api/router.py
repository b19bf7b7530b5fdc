"""acc_ledger REST API — accounts, movements, deposits and trade settlement."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.acc_common.database import get_db_session
from src.acc_common.response import ApiResponse, success_response
from src.acc_ledger.application.schemas import (
    AccountResponse,
    DepositRequest,
    DepositResponse,
    FundsRequest,
    MovementResponse,
    SettleRequest,
    SettleResponse,
)
from src.acc_ledger.application.service import AccountingService
from src.acc_ledger.infrastructure.persistence import SqlAccountingDao

router = APIRouter(prefix="/ledger", tags=["ledger"])


def get_accounting_service(
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> AccountingService:
    """One store per request, bound to the request's DB session."""
    return AccountingService(lambda: SqlAccountingDao(db))


Service = Annotated[AccountingService, Depends(get_accounting_service)]


@router.get("/accounts/{participant}")
async def get_account(participant: str, service: Service, request: Request) -> ApiResponse:
    account = await service.get_account(participant)
    return success_response(AccountResponse.from_account(account).model_dump(), request)


@router.get("/movements/{key}")
async def get_movement(key: str, service: Service, request: Request) -> ApiResponse:
    movement = await service.get_movement(key)
    return success_response(MovementResponse.from_movement(movement).model_dump(mode="json"), request)


@router.post("/deposits")
async def apply_deposit(body: DepositRequest, service: Service, request: Request) -> ApiResponse:
    deposit, account = await service.apply_deposit(
        body.uid, body.participant, body.amount_cents, body.reference
    )
    return success_response(DepositResponse.from_result(deposit, account).model_dump(), request)


@router.post("/block")
async def block_funds(body: FundsRequest, service: Service, request: Request) -> ApiResponse:
    account = await service.block_funds(body.participant, body.amount_cents, body.reference)
    return success_response(AccountResponse.from_account(account).model_dump(), request)


@router.post("/unblock")
async def unblock_funds(body: FundsRequest, service: Service, request: Request) -> ApiResponse:
    account = await service.unblock_funds(body.participant, body.amount_cents, body.reference)
    return success_response(AccountResponse.from_account(account).model_dump(), request)


@router.post("/settle")
async def settle_trade(body: SettleRequest, service: Service, request: Request) -> ApiResponse:
    buyer, seller = await service.settle_trade(
        body.buyer, body.seller, body.amount_cents, body.reference
    )
    data = SettleResponse(
        reference=body.reference,
        buyer=AccountResponse.from_account(buyer),
        seller=AccountResponse.from_account(seller),
    )
    return success_response(data.model_dump(), request)
