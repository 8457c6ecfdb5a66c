"""
CONTRIBUTION PAYMENTS

Implements:
1. Provider order creation (Razorpay Orders API over httpx)
2. Checkout callback verification + contribution income record

RULES:
- Single attempt against the provider, no retries
- Nothing is persisted unless the callback signature verifies
- Duplicate callbacks are NOT detected; a replayed valid callback inserts
  a second income record
"""

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import PyMongoError
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional
import httpx
import logging
import os

from fintrack.core.financial_precision import (
    FinancialPrecisionError, to_decimal, to_minor_units
)
from fintrack.core.signatures import verify_payment_signature
from fintrack.errors import (
    InvalidAmountError, InvalidRecordError, OrderCreationError, PersistenceError,
    ProjectNotFoundError
)
from fintrack.financial_service import INCOME, ProjectRecordService
from fintrack.models import ContributionData
from fintrack.session import current_time_ms

logger = logging.getLogger(__name__)

DEFAULT_RAZORPAY_API_URL = "https://api.razorpay.com/v1"
DEFAULT_CONTRIBUTION_PROJECT = "veritas25"
DEFAULT_CONTRIBUTION_LABEL = "Veritas-25"
CONTRIBUTION_MARKER = "CONTRIBUTION"
ORDER_CURRENCY = "INR"
MINIMUM_AMOUNT = Decimal("1")
PROVIDER_TIMEOUT = 30.0  # seconds


def contribution_label() -> str:
    return os.environ.get("CONTRIBUTION_LABEL", DEFAULT_CONTRIBUTION_LABEL)


class RazorpayGateway:
    """Thin async client for the provider's Orders API"""

    def __init__(
        self,
        key_id: Optional[str] = None,
        key_secret: Optional[str] = None,
        api_url: Optional[str] = None,
        timeout: float = PROVIDER_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.key_id = key_id if key_id is not None else os.environ.get("RAZORPAY_KEY_ID", "")
        self.key_secret = key_secret if key_secret is not None else os.environ.get("RAZORPAY_KEY_SECRET", "")
        self.api_url = (api_url or os.environ.get("RAZORPAY_API_URL", DEFAULT_RAZORPAY_API_URL)).rstrip("/")
        self.timeout = timeout
        self.transport = transport

    async def create_order(
        self,
        amount: int,
        currency: str,
        receipt: str,
        notes: Dict[str, str]
    ) -> Dict[str, Any]:
        """Create an order; ``amount`` is in minor units. Returns the provider order verbatim."""
        if not (self.key_id and self.key_secret):
            logger.error("[PAYMENT] Provider credentials are not configured")
            raise OrderCreationError()

        payload = {
            "amount": amount,
            "currency": currency,
            "receipt": receipt,
            "notes": notes
        }

        try:
            async with httpx.AsyncClient(
                base_url=self.api_url,
                auth=(self.key_id, self.key_secret),
                timeout=self.timeout,
                transport=self.transport
            ) as client:
                response = await client.post("/orders", json=payload)
                response.raise_for_status()
                order = response.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"[PAYMENT] Provider rejected order {receipt}: HTTP {e.response.status_code}")
            raise OrderCreationError()
        except httpx.HTTPError as e:
            logger.error(f"[PAYMENT] Provider request failed for {receipt}: {str(e)}")
            raise OrderCreationError()
        except ValueError:
            logger.error(f"[PAYMENT] Provider returned a non-JSON body for {receipt}")
            raise OrderCreationError()

        if not isinstance(order, dict) or "id" not in order or "amount" not in order:
            logger.error(f"[PAYMENT] Provider returned an unexpected order for {receipt}")
            raise OrderCreationError()

        return order


class PaymentOrderService:
    """Validates a contribution amount and opens a provider order for it"""

    def __init__(self, gateway: RazorpayGateway, label: Optional[str] = None):
        self.gateway = gateway
        self.label = label or contribution_label()

    @staticmethod
    def validate_amount(amount: Any) -> Decimal:
        """Amount must be a finite number of at least one major unit"""
        if amount is None or isinstance(amount, bool):
            raise InvalidAmountError()
        try:
            value = to_decimal(amount)
        except FinancialPrecisionError:
            raise InvalidAmountError()
        if value < MINIMUM_AMOUNT:
            raise InvalidAmountError()
        try:
            to_minor_units(value)
        except FinancialPrecisionError:
            raise InvalidAmountError()
        return value

    async def create_order(self, amount: Any) -> Dict[str, Any]:
        value = self.validate_amount(amount)
        receipt = f"contribution_{current_time_ms()}"

        order = await self.gateway.create_order(
            amount=to_minor_units(value),
            currency=ORDER_CURRENCY,
            receipt=receipt,
            notes={"purpose": f"{self.label} Contribution"}
        )

        logger.info(f"[PAYMENT] Order {order.get('id')} created for receipt {receipt}")
        return order


class PaymentVerificationService:
    """
    Verifies a checkout callback and records the contribution as income of
    the well-known contribution project.
    """

    def __init__(
        self,
        db: AsyncIOMotorDatabase,
        key_secret: Optional[str] = None,
        project_name: Optional[str] = None,
        label: Optional[str] = None
    ):
        self.db = db
        self.key_secret = key_secret if key_secret is not None else os.environ.get("RAZORPAY_KEY_SECRET", "")
        self.project_name = project_name or os.environ.get("CONTRIBUTION_PROJECT_NAME", DEFAULT_CONTRIBUTION_PROJECT)
        self.label = label or contribution_label()
        self.records = ProjectRecordService(db, INCOME)

    async def _contribution_project_id(self) -> str:
        try:
            project = await self.db.projects.find_one(
                {"project_name": self.project_name}, {"_id": 1}
            )
        except PyMongoError as e:
            logger.error(f"[PAYMENT] Contribution project lookup failed: {str(e)}")
            project = None

        if not project:
            raise ProjectNotFoundError(f"{self.label} project not found")
        return str(project["_id"])

    async def verify_and_record(
        self,
        order_id: Optional[str],
        payment_id: Optional[str],
        signature: Optional[str],
        contribution: ContributionData
    ) -> dict:
        verify_payment_signature(self.key_secret, order_id or "", payment_id or "", signature or "")

        project_id = await self._contribution_project_id()

        try:
            record = self.records.prepare({
                "name": contribution.name,
                "phone_number": contribution.phone_number,
                "amount": contribution.amount,
                "description": contribution.message or f"Contribution for {self.label}",
                "date": datetime.utcnow().date(),
                "called_status": True,
                "called_by": CONTRIBUTION_MARKER
            })
        except InvalidRecordError:
            logger.error(
                f"[PAYMENT] Verified payment {payment_id} for order {order_id} was NOT recorded: "
                f"invalid contribution data"
            )
            raise

        try:
            income = await self.records.insert(project_id, record)
        except PersistenceError:
            # Paid at the provider but not recorded here
            logger.error(
                f"[PAYMENT] Verified payment {payment_id} for order {order_id} was NOT recorded"
            )
            raise PersistenceError("Failed to store contribution record")

        logger.info(f"[PAYMENT] Payment {payment_id} verified and recorded as income:{income['id']}")
        return income
