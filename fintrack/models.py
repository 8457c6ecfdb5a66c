from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime, date as date_type


def _today() -> date_type:
    return datetime.utcnow().date()


# ============================================
# PROJECT MODEL
# ============================================
class Project(BaseModel):
    project_id: Optional[str] = Field(default=None, alias="_id")
    project_name: str
    password_hash: str
    created_at: datetime = Field(default_factory=lambda: datetime.utcnow())
    updated_at: datetime = Field(default_factory=lambda: datetime.utcnow())

    class Config:
        populate_by_name = True

class ProjectSummary(BaseModel):
    id: str
    project_name: str
    created_at: Optional[datetime] = None

class ProjectAccessRequest(BaseModel):
    project_name: str
    password: str

class AuthenticatedProject(BaseModel):
    id: str
    project_name: str

class ProjectAccessResponse(BaseModel):
    project: AuthenticatedProject
    authenticated_at: int  # epoch milliseconds

# ============================================
# INCOME MODELS
# ============================================
class IncomeCreate(BaseModel):
    name: str = Field(..., min_length=1)
    phone_number: Optional[str] = None
    amount: float
    description: Optional[str] = None
    date: date_type = Field(default_factory=_today)
    called_status: bool = False
    called_by: Optional[str] = None

class IncomeUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    phone_number: Optional[str] = None
    amount: Optional[float] = None
    description: Optional[str] = None
    date: Optional[date_type] = None
    called_status: Optional[bool] = None
    called_by: Optional[str] = None

# ============================================
# EXPENSE MODELS
# ============================================
EXPENSE_CATEGORIES = [
    "Food",
    "Transport & Fuel",
    "Resource Utilities",
    "Program Expenses",
    "Medical & Hospitality",
    "Arts & Decoration",
    "Intercession",
    "Coordination",
    "Bills & Utilities",
    "Travel Allowance",
    "Other",
]

PAYMENT_METHODS = ["Cash", "UPI", "Card", "Cheque", "Bank Transfer", "Other"]

class ExpenseCreate(BaseModel):
    description: str = Field(..., min_length=1)
    amount: float
    date: date_type = Field(default_factory=_today)
    category: str = "Other"
    who: Optional[str] = None
    phone_number: Optional[str] = None
    payment_method: Optional[str] = None
    approved_by: Optional[str] = None

class ExpenseUpdate(BaseModel):
    description: Optional[str] = Field(default=None, min_length=1)
    amount: Optional[float] = None
    date: Optional[date_type] = None
    category: Optional[str] = None
    who: Optional[str] = None
    phone_number: Optional[str] = None
    payment_method: Optional[str] = None
    approved_by: Optional[str] = None

# ============================================
# CALL BOOTH MODELS
# ============================================
class CallBoothCreate(BaseModel):
    name: str = Field(..., min_length=1)
    phone_number: str = Field(..., min_length=1)
    contacted: bool = False
    answered: bool = False

class CallBoothUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    phone_number: Optional[str] = Field(default=None, min_length=1)
    contacted: Optional[bool] = None
    answered: Optional[bool] = None

# ============================================
# STATS MODEL
# ============================================
class ProjectStats(BaseModel):
    totalIncome: float = 0.0
    totalExpenses: float = 0.0
    netBalance: float = 0.0
    incomeCount: int = 0
    expenseCount: int = 0

# ============================================
# CONTRIBUTION / PAYMENT MODELS
# ============================================
class CreateOrderRequest(BaseModel):
    amount: Optional[float] = None  # major units; validated by the order service

class ContributionData(BaseModel):
    name: str
    phone_number: str
    amount: float
    message: Optional[str] = None

class VerifyPaymentRequest(BaseModel):
    razorpay_order_id: Optional[str] = None
    razorpay_payment_id: Optional[str] = None
    razorpay_signature: Optional[str] = None
    contributionData: ContributionData

class ContributionReceipt(BaseModel):
    name: str
    amount: float
    phone_number: str
    order_id: Optional[str] = None
    receipt_number: str
    datetime: str  # ISO timestamp

class SuccessResponse(BaseModel):
    success: bool = True
