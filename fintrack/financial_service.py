from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument
from pymongo.errors import PyMongoError
from pydantic import BaseModel
from dataclasses import dataclass, field
from datetime import datetime, date
from typing import Dict, List, Optional, Tuple
import logging
import re

from fintrack.core.financial_precision import (
    sum_amounts, safe_add, to_decimal, to_float, validate_non_negative
)
from fintrack.database import parse_object_id, serialize_doc
from fintrack.errors import (
    InvalidRecordError, PersistenceError, ProjectNotFoundError, RecordNotFoundError
)
from fintrack.models import EXPENSE_CATEGORIES, PAYMENT_METHODS, ProjectStats

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RecordKind:
    """How one project-owned collection is stored, sorted and searched"""
    name: str
    collection: str
    sort: List[Tuple[str, int]]
    search_fields: List[str]
    status_field: Optional[str] = None
    status_filters: Dict[str, bool] = field(default_factory=dict)


INCOME = RecordKind(
    name="income",
    collection="income",
    sort=[("date", -1), ("created_at", -1)],
    search_fields=["name", "phone_number", "called_by"],
    status_field="called_status",
    status_filters={"called": True, "not-called": False},
)

EXPENSES = RecordKind(
    name="expenses",
    collection="expenses",
    sort=[("date", -1), ("created_at", -1)],
    search_fields=["description", "category", "who"],
)

CALL_BOOTH = RecordKind(
    name="call_booth",
    collection="call_booth",
    sort=[("created_at", -1)],
    search_fields=["name", "phone_number"],
    status_field="contacted",
    status_filters={"contacted": True, "not-contacted": False},
)


class ProjectRecordService:
    """
    List / create / update / delete for records owned by a project.

    TRUST BOUNDARY:
    - Records are filtered by project_id only
    - No session or ownership check happens here; access control is the
      client-side SessionGuard's job
    - Updates are last-write-wins (no version check)
    """

    def __init__(self, db: AsyncIOMotorDatabase, kind: RecordKind):
        self.db = db
        self.kind = kind
        self.collection = db[kind.collection]

    # =========================================================================
    # VALIDATION
    # =========================================================================

    def prepare(self, data: dict) -> dict:
        """Validate field values and convert them for storage"""
        if "amount" in data and data["amount"] is not None:
            validate_non_negative(data["amount"], "amount")
            data["amount"] = to_float(to_decimal(data["amount"]))

        if isinstance(data.get("date"), date):
            data["date"] = data["date"].isoformat()

        category = data.get("category")
        if category is not None and category not in EXPENSE_CATEGORIES:
            raise InvalidRecordError(f"Unknown category: {category}")

        payment_method = data.get("payment_method")
        if payment_method is not None and payment_method not in PAYMENT_METHODS:
            raise InvalidRecordError(f"Unknown payment method: {payment_method}")

        return data

    async def _require_project(self, project_id: str):
        oid = parse_object_id(project_id)
        if oid is None:
            raise ProjectNotFoundError()
        try:
            project = await self.db.projects.find_one({"_id": oid}, {"_id": 1})
        except PyMongoError as e:
            logger.error(f"[RECORDS] Project lookup failed: {str(e)}")
            raise PersistenceError()
        if not project:
            raise ProjectNotFoundError()

    def _status_query(self, status: Optional[str]) -> dict:
        if not status or status == "all":
            return {}
        if status not in self.kind.status_filters:
            raise InvalidRecordError(f"Unknown {self.kind.name} filter: {status}")
        return {self.kind.status_field: self.kind.status_filters[status]}

    def _search_query(self, search: Optional[str]) -> dict:
        search = (search or "").strip()
        if not search:
            return {}
        pattern = re.escape(search)
        return {"$or": [
            {name: {"$regex": pattern, "$options": "i"}}
            for name in self.kind.search_fields
        ]}

    # =========================================================================
    # OPERATIONS
    # =========================================================================

    async def list(
        self,
        project_id: str,
        search: Optional[str] = None,
        status: Optional[str] = None
    ) -> List[dict]:
        query = {"project_id": project_id}
        query.update(self._status_query(status))
        query.update(self._search_query(search))

        try:
            cursor = self.collection.find(query).sort(self.kind.sort)
            docs = await cursor.to_list(length=None)
        except PyMongoError as e:
            logger.error(f"[RECORDS] Listing {self.kind.name} failed: {str(e)}")
            raise PersistenceError(f"Failed to load {self.kind.name}")

        return [serialize_doc(doc) for doc in docs]

    async def insert(self, project_id: str, data: dict) -> dict:
        """Insert a prepared record; the caller has already resolved the project"""
        now = datetime.utcnow()
        doc = dict(data)
        doc.update({
            "project_id": project_id,
            "created_at": now,
            "updated_at": now
        })

        try:
            result = await self.collection.insert_one(doc)
        except PyMongoError as e:
            logger.error(f"[RECORDS] Insert into {self.kind.name} failed: {str(e)}")
            raise PersistenceError()

        doc["_id"] = result.inserted_id
        logger.info(f"[RECORDS] Created {self.kind.name}:{result.inserted_id} for project:{project_id}")
        return serialize_doc(doc)

    async def create(self, project_id: str, payload: BaseModel) -> dict:
        data = self.prepare(payload.model_dump())
        await self._require_project(project_id)
        return await self.insert(project_id, data)

    async def update(self, project_id: str, record_id: str, payload: BaseModel) -> dict:
        oid = parse_object_id(record_id)
        if oid is None:
            raise RecordNotFoundError()

        data = self.prepare(payload.model_dump(exclude_unset=True, exclude_none=True))
        data["updated_at"] = datetime.utcnow()

        try:
            updated = await self.collection.find_one_and_update(
                {"_id": oid, "project_id": project_id},
                {"$set": data},
                return_document=ReturnDocument.AFTER
            )
        except PyMongoError as e:
            logger.error(f"[RECORDS] Update of {self.kind.name}:{record_id} failed: {str(e)}")
            raise PersistenceError("Failed to update record")

        if not updated:
            raise RecordNotFoundError()

        logger.info(f"[RECORDS] Updated {self.kind.name}:{record_id}")
        return serialize_doc(updated)

    async def delete(self, project_id: str, record_id: str):
        oid = parse_object_id(record_id)
        if oid is None:
            raise RecordNotFoundError()

        try:
            result = await self.collection.delete_one({"_id": oid, "project_id": project_id})
        except PyMongoError as e:
            logger.error(f"[RECORDS] Delete of {self.kind.name}:{record_id} failed: {str(e)}")
            raise PersistenceError("Failed to delete record")

        if result.deleted_count == 0:
            raise RecordNotFoundError()

        logger.info(f"[RECORDS] Deleted {self.kind.name}:{record_id}")


class FinancialStatsService:
    """Aggregate income / expense totals for one project"""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db

    async def get_project_stats(self, project_id: str) -> ProjectStats:
        try:
            income = await self.db.income.find(
                {"project_id": project_id}, {"amount": 1}
            ).to_list(length=None)
            expenses = await self.db.expenses.find(
                {"project_id": project_id}, {"amount": 1}
            ).to_list(length=None)
        except PyMongoError as e:
            logger.error(f"[RECORDS] Stats for project:{project_id} failed: {str(e)}")
            raise PersistenceError("Failed to load project stats")

        total_income = sum_amounts(income)
        total_expenses = sum_amounts(expenses)

        return ProjectStats(
            totalIncome=to_float(total_income),
            totalExpenses=to_float(total_expenses),
            netBalance=to_float(safe_add(total_income, -total_expenses)),
            incomeCount=len(income),
            expenseCount=len(expenses)
        )
