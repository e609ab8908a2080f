"""Sales and payment QR code REST API."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.cb_common.database import get_db_session
from src.cb_common.enums import SaleStatus
from src.cb_common.response import ApiResponse, wrap
from src.cb_gateway.auth.dependencies import get_current_user, require_client, require_merchant
from src.cb_gateway.user.db_models import UserModel
from src.cb_pricing.application.provider import get_rate_config
from src.cb_pricing.domain.rates import RateConfig
from src.cb_sales.application.schemas import CreatePaymentCodeRequest, RecordSaleRequest
from src.cb_sales.application.service import SalesService

router = APIRouter(tags=["sales"])

_service = SalesService()


@router.post("/sales", status_code=status.HTTP_201_CREATED)
async def record_sale(
    body: RecordSaleRequest,
    merchant: Annotated[UserModel, Depends(require_merchant)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    rates: Annotated[RateConfig, Depends(get_rate_config)],
    request: Request,
) -> ApiResponse:
    data = await _service.record_sale(
        db,
        str(merchant.id),
        body.customer_id,
        body.amount,
        body.payment_method.value,
        body.status,
        rates,
        description=body.description,
    )
    return wrap(request, data.model_dump(), "Sale recorded")


@router.get("/sales")
async def list_sales(
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    sale_status: SaleStatus | None = Query(None, alias="status"),
    cursor: str | None = Query(None, description="Pagination cursor (sale ID)"),
    limit: int = Query(20, ge=1, le=100),
) -> ApiResponse:
    data = await _service.list_sales(
        db,
        str(current_user.id),
        current_user.user_type,
        sale_status.value if sale_status else None,
        cursor,
        limit,
    )
    return wrap(request, data.model_dump())


@router.get("/sales/{sale_id}")
async def get_sale(
    sale_id: str,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.get_sale(db, str(current_user.id), current_user.user_type, sale_id)
    return wrap(request, data.model_dump())


@router.post("/sales/{sale_id}/complete")
async def complete_sale(
    sale_id: str,
    merchant: Annotated[UserModel, Depends(require_merchant)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.complete_sale(db, str(merchant.id), sale_id)
    return wrap(request, data.model_dump(), "Sale completed")


@router.post("/sales/{sale_id}/cancel")
async def cancel_sale(
    sale_id: str,
    merchant: Annotated[UserModel, Depends(require_merchant)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.cancel_sale(db, str(merchant.id), sale_id)
    return wrap(request, data.model_dump(), "Sale cancelled")


@router.post("/sales/{sale_id}/refund")
async def refund_sale(
    sale_id: str,
    merchant: Annotated[UserModel, Depends(require_merchant)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.refund_sale(db, str(merchant.id), sale_id)
    return wrap(request, data.model_dump(), "Sale refunded")


@router.post("/payment-qr", status_code=status.HTTP_201_CREATED)
async def create_payment_code(
    body: CreatePaymentCodeRequest,
    merchant: Annotated[UserModel, Depends(require_merchant)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.create_payment_code(
        db, str(merchant.id), body.amount, body.description
    )
    return wrap(request, data.model_dump(), "Payment code created")


@router.get("/payment-qr/{code}")
async def get_payment_code(
    code: str,
    _user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.get_payment_code(db, code)
    return wrap(request, data.model_dump())


@router.post("/payment-qr/{code}/redeem")
async def redeem_payment_code(
    code: str,
    client: Annotated[UserModel, Depends(require_client)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    rates: Annotated[RateConfig, Depends(get_rate_config)],
    request: Request,
) -> ApiResponse:
    data = await _service.redeem_payment_code(db, str(client.id), code, rates)
    return wrap(request, data.model_dump(), "Payment completed")
