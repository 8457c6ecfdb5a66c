"""
CONTRIBUTION API ROUTES

- POST /api/contributions/create-order    open a provider order
- POST /api/contributions/verify-payment  verify the checkout callback and
                                          record the contribution as income
"""

from fastapi import APIRouter, Depends
from motor.motor_asyncio import AsyncIOMotorDatabase
import logging

from fintrack.database import get_db
from fintrack.models import (
    CreateOrderRequest, SuccessResponse, VerifyPaymentRequest
)
from fintrack.payment_service import (
    PaymentOrderService, PaymentVerificationService, RazorpayGateway
)

logger = logging.getLogger(__name__)

contribution_router = APIRouter(prefix="/api/contributions", tags=["Contributions"])


def get_payment_gateway() -> RazorpayGateway:
    """FastAPI dependency returning a provider gateway configured from the environment"""
    return RazorpayGateway()


@contribution_router.post("/create-order")
async def create_order(
    order_request: CreateOrderRequest,
    gateway: RazorpayGateway = Depends(get_payment_gateway)
):
    """Returns the provider's order object verbatim"""
    return await PaymentOrderService(gateway).create_order(order_request.amount)


@contribution_router.post("/verify-payment", response_model=SuccessResponse)
async def verify_payment(
    payment: VerifyPaymentRequest,
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    await PaymentVerificationService(db).verify_and_record(
        order_id=payment.razorpay_order_id,
        payment_id=payment.razorpay_payment_id,
        signature=payment.razorpay_signature,
        contribution=payment.contributionData
    )
    return {"success": True}
