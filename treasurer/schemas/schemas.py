from datetime import date, datetime
from decimal import Decimal
from typing import Annotated, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, PlainSerializer

# Amounts stay Decimal in Python and go over the wire as JSON numbers.
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class CamelModel(BaseModel):
    """Accepts either field names or the camelCase keys the web client uses."""

    model_config = ConfigDict(populate_by_name=True)


class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(min_length=1)


class RegisterRequest(CamelModel):
    name: str = Field(min_length=1)
    email: EmailStr
    password: str = Field(min_length=6)
    registration_number: str = Field(alias="registrationNumber")


class SetupPasswordRequest(CamelModel):
    token: str = Field(min_length=1)
    password: str = Field(min_length=6)


class AuthResponse(CamelModel):
    token: str
    role: str
    email: Optional[str]
    name: str = ""
    member_id: Optional[int] = Field(default=None, alias="memberId")


class MemberBase(CamelModel):
    name: str = Field(min_length=1)
    email: EmailStr
    nickname: Optional[str] = None
    registration_number: str = Field(alias="registrationNumber")


class MemberCreate(MemberBase):
    pass


class MemberUpdate(MemberBase):
    role: Optional[Literal["admin", "diretor_financeiro", "viewer"]] = None
    active: Optional[bool] = None


class MemberPublicRead(BaseModel):
    id: int
    name: str
    email: Optional[str]
    nickname: Optional[str]
    registration_number: Optional[str]
    joined_at: Optional[datetime]

    model_config = ConfigDict(from_attributes=True)


class MemberRead(MemberPublicRead):
    role: str
    active: bool
    must_reset_password: bool


class MemberInvite(CamelModel):
    member: MemberRead
    setup_token: str = Field(alias="setupToken")


class DelinquentMemberRead(BaseModel):
    id: int
    name: str
    email: Optional[str]
    nickname: Optional[str]
    joined_at: Optional[datetime]

    model_config = ConfigDict(from_attributes=True)


class AttachmentFields(CamelModel):
    attachment_id: Optional[str] = Field(default=None, alias="attachmentId")
    attachment_name: Optional[str] = Field(default=None, alias="attachmentName")
    attachment_url: Optional[str] = Field(default=None, alias="attachmentUrl")


class PaymentCreate(AttachmentFields):
    member_id: Optional[int] = Field(default=None, alias="memberId")
    month: Optional[int] = None
    year: Optional[int] = None
    amount: Optional[Money] = None
    paid: bool = False
    paid_at: Optional[date] = Field(default=None, alias="paidAt")
    notes: Optional[str] = None
    goal_id: Optional[int] = Field(default=None, alias="goalId")


class PaymentUpdate(AttachmentFields):
    amount: Optional[Money] = None
    paid: bool = False
    paid_at: Optional[date] = Field(default=None, alias="paidAt")
    notes: Optional[str] = None
    goal_id: Optional[int] = Field(default=None, alias="goalId")


class PaymentRead(BaseModel):
    id: int
    member_id: int
    member_name: Optional[str] = None
    month: int
    year: int
    amount: Money
    paid: bool
    paid_at: Optional[date]
    created_at: Optional[datetime]
    notes: Optional[str]
    goal_id: Optional[int]
    attachment_id: Optional[str]
    attachment_name: Optional[str]
    attachment_url: Optional[str]

    model_config = ConfigDict(from_attributes=True)


class ExpenseCreate(AttachmentFields):
    title: str = Field(min_length=1)
    amount: Money = Field(gt=0)
    expense_date: date = Field(alias="expenseDate")
    category: Optional[str] = None
    notes: Optional[str] = None
    event_id: Optional[int] = Field(default=None, alias="eventId")


class ExpenseUpdate(ExpenseCreate):
    pass


class ExpenseRead(BaseModel):
    id: int
    title: str
    amount: Money
    expense_date: date
    category: Optional[str]
    notes: Optional[str]
    event_id: Optional[int]
    attachment_id: Optional[str]
    attachment_name: Optional[str]
    attachment_url: Optional[str]

    model_config = ConfigDict(from_attributes=True)


class EventCreate(CamelModel):
    name: str = Field(min_length=1)
    event_date: date = Field(alias="eventDate")
    raised_amount: Money = Field(default=Decimal("0"), ge=0, alias="raisedAmount")
    spent_amount: Money = Field(default=Decimal("0"), ge=0, alias="spentAmount")
    description: Optional[str] = None


class EventUpdate(EventCreate):
    pass


class EventRead(BaseModel):
    id: int
    name: str
    event_date: date
    raised_amount: Money
    spent_amount: Money
    description: Optional[str]

    model_config = ConfigDict(from_attributes=True)


class EventSummaryRead(BaseModel):
    name: str
    date: date
    raised: Money
    spent: Money
    balance: Money


class GoalCreate(CamelModel):
    title: str = Field(min_length=1)
    target_amount: Money = Field(gt=0, alias="targetAmount")
    deadline: Optional[date] = None
    description: Optional[str] = None


class GoalUpdate(GoalCreate):
    pass


class GoalRead(BaseModel):
    id: int
    title: str
    target_amount: Money
    deadline: Optional[date]
    description: Optional[str]
    raised: Money = Decimal("0")
    progress: float = 0.0


class StatementEntryRead(BaseModel):
    date: str
    type: str
    description: str
    amount: Money
    notes: str
    running_balance: Money

    model_config = ConfigDict(from_attributes=True)


class StatementSummaryRead(CamelModel):
    total_income: Money = Field(alias="totalIncome")
    total_expense: Money = Field(alias="totalExpense")
    net_balance: Money = Field(alias="netBalance")
    count: int

    model_config = ConfigDict(from_attributes=True)


class StatementRead(BaseModel):
    entries: List[StatementEntryRead]
    summary: StatementSummaryRead


class PublicSettingsRead(CamelModel):
    org_name: str = Field(alias="orgName")
    org_tagline: str = Field(alias="orgTagline")
    default_payment_amount: Money = Field(alias="defaultPaymentAmount")
    payment_due_day: Optional[int] = Field(alias="paymentDueDay")
    pix_key: str = Field(alias="pixKey")
    pix_receiver: str = Field(alias="pixReceiver")
    dashboard_note: str = Field(alias="dashboardNote")
    disclaimer_text: str = Field(alias="disclaimerText")
    document_footer: str = Field(alias="documentFooter")


class SettingsRead(CamelModel):
    settings: PublicSettingsRead
    current_balance: Money = Field(alias="currentBalance")


class SettingsUpdate(CamelModel):
    org_name: Optional[str] = Field(default=None, alias="orgName")
    org_tagline: Optional[str] = Field(default=None, alias="orgTagline")
    default_payment_amount: Optional[Money] = Field(default=None, ge=0, alias="defaultPaymentAmount")
    payment_due_day: Optional[int] = Field(default=None, ge=1, le=31, alias="paymentDueDay")
    pix_key: Optional[str] = Field(default=None, alias="pixKey")
    pix_receiver: Optional[str] = Field(default=None, alias="pixReceiver")
    dashboard_note: Optional[str] = Field(default=None, alias="dashboardNote")
    disclaimer_text: Optional[str] = Field(default=None, alias="disclaimerText")
    document_footer: Optional[str] = Field(default=None, alias="documentFooter")
    current_balance: Optional[Money] = Field(default=None, alias="currentBalance")


class BalanceUpdate(CamelModel):
    value: Money


class BalanceRead(CamelModel):
    current_balance: Money = Field(alias="currentBalance")


class MonthlyTotalRead(BaseModel):
    month: int
    year: int
    total: Money


class AnnualTotalRead(BaseModel):
    year: int
    total: Money


class BalanceReportRead(CamelModel):
    total_raised: Money = Field(alias="totalRaised")
    total_expenses: Money = Field(alias="totalExpenses")
    balance: Money


class MonthlyCollectionRead(BaseModel):
    month: int
    year: Optional[int] = None
    total: Money


class RankingRead(BaseModel):
    name: str
    payments: int


class DashboardRead(CamelModel):
    total_raised: Money = Field(alias="totalRaised")
    total_expenses: Money = Field(alias="totalExpenses")
    balance: Money
    current_balance: Optional[Money] = Field(default=None, alias="currentBalance")
    monthly_collections: List[MonthlyCollectionRead] = Field(alias="monthlyCollections")
    goals: List[GoalRead]
    delinquent_members: List[str] = Field(alias="delinquentMembers")
    ranking: List[RankingRead]


class MessageResponse(BaseModel):
    ok: bool = True
    detail: Optional[str] = None


class HealthRead(BaseModel):
    status: str
    version: Dict[str, str]
