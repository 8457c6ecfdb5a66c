"""
PROJECT API ROUTES

Implements:
- Project listing and password access (session token issue)
- Project stats
- Income / expense / call-booth CRUD keyed by project id

TRUST BOUNDARY: record routes do not re-check the client's session token.
The project id in the path is taken as-is; access control happens in the
client-side SessionGuard before these routes are called.
"""

from fastapi import APIRouter, Depends, Query, status
from motor.motor_asyncio import AsyncIOMotorDatabase
from typing import Optional
import logging

from fintrack.auth import ProjectAccessService
from fintrack.database import get_db
from fintrack.financial_service import (
    CALL_BOOTH, EXPENSES, INCOME, FinancialStatsService, ProjectRecordService
)
from fintrack.models import (
    CallBoothCreate, CallBoothUpdate,
    ExpenseCreate, ExpenseUpdate,
    IncomeCreate, IncomeUpdate,
    ProjectAccessRequest, ProjectAccessResponse, ProjectSummary
)

logger = logging.getLogger(__name__)

project_router = APIRouter(prefix="/api/projects", tags=["Projects"])


# ============================================
# PROJECT ACCESS
# ============================================

@project_router.get("")
async def list_projects(db: AsyncIOMotorDatabase = Depends(get_db)):
    """Project names for the access form's suggestions (no hashes)"""
    projects = await ProjectAccessService(db).list_projects()
    return {"projects": [ProjectSummary(**p) for p in projects]}


@project_router.post("/authenticate", response_model=ProjectAccessResponse)
async def authenticate_project(
    access: ProjectAccessRequest,
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    """
    Check a project name / password pair and issue a client-held session.
    Unknown projects and wrong passwords get the same 401.
    """
    session = await ProjectAccessService(db).authenticate(access.project_name, access.password)
    return {
        "project": {"id": session.project_id, "project_name": session.project_name},
        "authenticated_at": session.authenticated_at
    }


@project_router.get("/{project_id}/stats")
async def get_project_stats(project_id: str, db: AsyncIOMotorDatabase = Depends(get_db)):
    stats = await FinancialStatsService(db).get_project_stats(project_id)
    return {"stats": stats.model_dump()}


# ============================================
# INCOME
# ============================================

@project_router.get("/{project_id}/income")
async def list_income(
    project_id: str,
    search: Optional[str] = None,
    called: Optional[str] = Query(default=None, description="all | called | not-called"),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    income = await ProjectRecordService(db, INCOME).list(project_id, search=search, status=called)
    return {"income": income}


@project_router.post("/{project_id}/income", status_code=status.HTTP_201_CREATED)
async def create_income(
    project_id: str,
    income_data: IncomeCreate,
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    income = await ProjectRecordService(db, INCOME).create(project_id, income_data)
    return {"income": income}


@project_router.put("/{project_id}/income/{income_id}")
async def update_income(
    project_id: str,
    income_id: str,
    income_data: IncomeUpdate,
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    income = await ProjectRecordService(db, INCOME).update(project_id, income_id, income_data)
    return {"income": income}


@project_router.delete("/{project_id}/income/{income_id}")
async def delete_income(
    project_id: str,
    income_id: str,
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    await ProjectRecordService(db, INCOME).delete(project_id, income_id)
    return {"success": True}


# ============================================
# EXPENSES
# ============================================

@project_router.get("/{project_id}/expenses")
async def list_expenses(
    project_id: str,
    search: Optional[str] = None,
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    expenses = await ProjectRecordService(db, EXPENSES).list(project_id, search=search)
    return {"expenses": expenses}


@project_router.post("/{project_id}/expenses", status_code=status.HTTP_201_CREATED)
async def create_expense(
    project_id: str,
    expense_data: ExpenseCreate,
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    expense = await ProjectRecordService(db, EXPENSES).create(project_id, expense_data)
    return {"expense": expense}


@project_router.put("/{project_id}/expenses/{expense_id}")
async def update_expense(
    project_id: str,
    expense_id: str,
    expense_data: ExpenseUpdate,
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    expense = await ProjectRecordService(db, EXPENSES).update(project_id, expense_id, expense_data)
    return {"expense": expense}


@project_router.delete("/{project_id}/expenses/{expense_id}")
async def delete_expense(
    project_id: str,
    expense_id: str,
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    await ProjectRecordService(db, EXPENSES).delete(project_id, expense_id)
    return {"success": True}


# ============================================
# CALL BOOTH
# ============================================

@project_router.get("/{project_id}/call-booth")
async def list_call_booth(
    project_id: str,
    search: Optional[str] = None,
    contacted: Optional[str] = Query(default=None, description="all | contacted | not-contacted"),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    entries = await ProjectRecordService(db, CALL_BOOTH).list(project_id, search=search, status=contacted)
    return {"callBooth": entries}


@project_router.post("/{project_id}/call-booth", status_code=status.HTTP_201_CREATED)
async def create_call_booth_entry(
    project_id: str,
    entry_data: CallBoothCreate,
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    entry = await ProjectRecordService(db, CALL_BOOTH).create(project_id, entry_data)
    return {"callBoothEntry": entry}


@project_router.put("/{project_id}/call-booth/{entry_id}")
async def update_call_booth_entry(
    project_id: str,
    entry_id: str,
    entry_data: CallBoothUpdate,
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    entry = await ProjectRecordService(db, CALL_BOOTH).update(project_id, entry_id, entry_data)
    return {"callBoothEntry": entry}


@project_router.delete("/{project_id}/call-booth/{entry_id}")
async def delete_call_booth_entry(
    project_id: str,
    entry_id: str,
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    await ProjectRecordService(db, CALL_BOOTH).delete(project_id, entry_id)
    return {"success": True}
