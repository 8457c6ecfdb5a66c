"""
Async Python client for the finance tracker API.

The client owns everything the server deliberately does not: the session
token lives in ``ClientSessionStorage`` and every project-scoped call runs
the ``SessionGuard`` before the request is made. Project-scoped methods take
the project *name*; the guard resolves it to the project id from the token.

Usage:
    async with FinanceTrackerClient("http://localhost:8000") as client:
        await client.authenticate("veritas25", "p@ss")
        stats = await client.get_stats("veritas25")

Transport failures raise ``NetworkError``; server errors are re-raised as the
matching ``FinanceTrackerError`` subclass. Nothing is retried.
"""

from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Union
import logging

import httpx
from pydantic import BaseModel

from fintrack.errors import NetworkError, error_from_response
from fintrack.models import ContributionData, ContributionReceipt, ProjectStats
from fintrack.session import (
    CONTRIBUTION_RECEIPT_KEY,
    ClientSessionStorage,
    ProjectSession,
    SessionGuard,
    current_time_ms,
)

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:8000"
REQUEST_TIMEOUT = 30.0  # seconds

Payload = Union[BaseModel, Dict[str, Any]]


def _as_json(payload: Payload, partial: bool = False) -> Dict[str, Any]:
    if isinstance(payload, BaseModel):
        return payload.model_dump(mode="json", exclude_unset=partial)
    return dict(payload)


class FinanceTrackerClient:

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        storage: Optional[ClientSessionStorage] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = REQUEST_TIMEOUT,
        clock: Callable[[], int] = current_time_ms
    ):
        self.storage = storage or ClientSessionStorage()
        self.guard = SessionGuard(self.storage, clock=clock)
        self._http = httpx.AsyncClient(base_url=base_url, transport=transport, timeout=timeout)

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.close()

    async def close(self):
        await self._http.aclose()

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        try:
            response = await self._http.request(method, path, **kwargs)
        except httpx.TransportError as e:
            logger.warning(f"[CLIENT] {method} {path} failed: {str(e)}")
            raise NetworkError() from e

        try:
            body = response.json()
        except ValueError:
            body = None

        if response.is_error:
            raise error_from_response(response.status_code, body)
        return body

    # =========================================================================
    # SESSION
    # =========================================================================

    async def list_projects(self) -> List[dict]:
        body = await self._request("GET", "/api/projects")
        return body["projects"]

    async def authenticate(self, project_name: str, password: str) -> ProjectSession:
        """Exchange a project password for a session token and keep it in storage"""
        body = await self._request(
            "POST",
            "/api/projects/authenticate",
            json={"project_name": project_name, "password": password}
        )
        session = ProjectSession(
            project_id=body["project"]["id"],
            project_name=body["project"]["project_name"],
            authenticated_at=body["authenticated_at"]
        )
        self.guard.issue(session)
        return session

    def logout(self):
        """Discard the local token; copies held elsewhere stay valid until they expire"""
        self.guard.clear()

    def session_for(self, project_name: str) -> ProjectSession:
        return self.guard.admit(project_name)

    def _project_path(self, project_name: str, *parts: str) -> str:
        session = self.guard.admit(project_name)
        return "/".join(["/api/projects", session.project_id, *parts])

    # =========================================================================
    # PROJECT DATA
    # =========================================================================

    async def get_stats(self, project_name: str) -> ProjectStats:
        body = await self._request("GET", self._project_path(project_name, "stats"))
        return ProjectStats(**body["stats"])

    async def _list(self, project_name: str, resource: str, key: str, **params) -> List[dict]:
        params = {k: v for k, v in params.items() if v is not None}
        body = await self._request("GET", self._project_path(project_name, resource), params=params)
        return body[key]

    async def _create(self, project_name: str, resource: str, key: str, payload: Payload) -> dict:
        body = await self._request(
            "POST", self._project_path(project_name, resource), json=_as_json(payload)
        )
        return body[key]

    async def _update(self, project_name: str, resource: str, key: str, record_id: str, payload: Payload) -> dict:
        body = await self._request(
            "PUT", self._project_path(project_name, resource, record_id), json=_as_json(payload, partial=True)
        )
        return body[key]

    async def _delete(self, project_name: str, resource: str, record_id: str):
        await self._request("DELETE", self._project_path(project_name, resource, record_id))

    async def list_income(self, project_name: str, search: Optional[str] = None, called: Optional[str] = None):
        return await self._list(project_name, "income", "income", search=search, called=called)

    async def create_income(self, project_name: str, payload: Payload) -> dict:
        return await self._create(project_name, "income", "income", payload)

    async def update_income(self, project_name: str, income_id: str, payload: Payload) -> dict:
        return await self._update(project_name, "income", "income", income_id, payload)

    async def delete_income(self, project_name: str, income_id: str):
        await self._delete(project_name, "income", income_id)

    async def list_expenses(self, project_name: str, search: Optional[str] = None):
        return await self._list(project_name, "expenses", "expenses", search=search)

    async def create_expense(self, project_name: str, payload: Payload) -> dict:
        return await self._create(project_name, "expenses", "expense", payload)

    async def update_expense(self, project_name: str, expense_id: str, payload: Payload) -> dict:
        return await self._update(project_name, "expenses", "expense", expense_id, payload)

    async def delete_expense(self, project_name: str, expense_id: str):
        await self._delete(project_name, "expenses", expense_id)

    async def list_call_booth(self, project_name: str, search: Optional[str] = None, contacted: Optional[str] = None):
        return await self._list(project_name, "call-booth", "callBooth", search=search, contacted=contacted)

    async def create_call_booth_entry(self, project_name: str, payload: Payload) -> dict:
        return await self._create(project_name, "call-booth", "callBoothEntry", payload)

    async def update_call_booth_entry(self, project_name: str, entry_id: str, payload: Payload) -> dict:
        return await self._update(project_name, "call-booth", "callBoothEntry", entry_id, payload)

    async def delete_call_booth_entry(self, project_name: str, entry_id: str):
        await self._delete(project_name, "call-booth", entry_id)

    # =========================================================================
    # CONTRIBUTIONS
    # =========================================================================

    async def create_order(self, amount: float) -> dict:
        return await self._request("POST", "/api/contributions/create-order", json={"amount": amount})

    async def verify_payment(
        self,
        order_id: str,
        payment_id: str,
        signature: str,
        contribution: Union[ContributionData, Dict[str, Any]]
    ) -> ContributionReceipt:
        """
        Submit the checkout callback. On success a receipt is kept in storage
        for one print/view cycle.
        """
        if not isinstance(contribution, ContributionData):
            contribution = ContributionData(**contribution)

        await self._request(
            "POST",
            "/api/contributions/verify-payment",
            json={
                "razorpay_order_id": order_id,
                "razorpay_payment_id": payment_id,
                "razorpay_signature": signature,
                "contributionData": contribution.model_dump()
            }
        )

        receipt = ContributionReceipt(
            name=contribution.name,
            amount=contribution.amount,
            phone_number=contribution.phone_number,
            order_id=order_id,
            receipt_number=payment_id,
            datetime=datetime.utcnow().isoformat()
        )
        self.storage.set_json(CONTRIBUTION_RECEIPT_KEY, receipt.model_dump())
        return receipt

    def get_receipt(self) -> Optional[ContributionReceipt]:
        data = self.storage.get_json(CONTRIBUTION_RECEIPT_KEY)
        return ContributionReceipt(**data) if data else None

    def clear_receipt(self):
        self.storage.remove_item(CONTRIBUTION_RECEIPT_KEY)
