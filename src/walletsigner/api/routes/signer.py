"""Signer endpoints: address creation and transaction signing."""

import logging

from fastapi import APIRouter, Depends

from walletsigner.api.deps import get_service
from walletsigner.contracts import (
    ApiResponse,
    CreateAddressRequest,
    SignedTransaction,
    SignTransactionRequest,
    WalletInfo,
)
from walletsigner.service import SignerService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/signer", tags=["Signer"])


@router.post(
    "/create",
    response_model=ApiResponse[WalletInfo],
    response_model_by_alias=True,
    response_model_exclude_none=True,
)
async def create_address(
    body: CreateAddressRequest,
    service: SignerService = Depends(get_service),
) -> ApiResponse[WalletInfo]:
    """Create the next address for a chain type."""
    info = await service.create_address(body.chain_type)
    return ApiResponse[WalletInfo](success=True, message="Address created", data=info)


@router.post(
    "/sign",
    response_model=ApiResponse[SignedTransaction],
    response_model_by_alias=True,
    response_model_exclude_none=True,
)
async def sign_transaction(
    body: SignTransactionRequest,
    service: SignerService = Depends(get_service),
) -> ApiResponse[SignedTransaction]:
    """Authorize and sign a transfer."""
    signed = await service.sign_transaction(body)
    return ApiResponse[SignedTransaction](success=True, message="Transaction signed", data=signed)
