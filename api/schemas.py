"""
Pydantic models for the CVR ledger HTTP surface.

Field names are the camelCase keys the finance front end reads; amounts are
plain JSON numbers rounded to pence.
"""
from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field


class BudgetLineOut(BaseModel):
    id: str
    code: str
    name: str
    budget: float


class PackagePositionOut(BaseModel):
    packageId: Optional[str] = Field(description="None for the Unallocated bucket")
    packageName: str
    budget: float
    committed: float
    actual: float
    variance: float = Field(description="budget - committed")
    remaining: float = Field(description="budget - actual")
    budgetLines: list[BudgetLineOut] = Field(default_factory=list)


class FinancialPositionOut(BaseModel):
    projectId: str
    totalBudget: float
    totalCommitted: float
    totalActual: float
    totalVariance: float
    totalRemaining: float
    entries: list[PackagePositionOut] = Field(default_factory=list)


class SourceBreakdownRowOut(BaseModel):
    sourceType: str
    total: float
    count: int


class CvrBreakdownOut(BaseModel):
    projectId: str
    budget: float
    commitments: list[SourceBreakdownRowOut] = Field(default_factory=list)
    actuals: list[SourceBreakdownRowOut] = Field(default_factory=list)
    percentCommitted: float
    percentActual: float


class BackfillRequest(BaseModel):
    projectId: Optional[str] = Field(default=None, description="Limit the pass to one project")
    since: Optional[datetime] = Field(default=None, description="Only documents updated at or after")
    until: Optional[datetime] = Field(default=None, description="Only documents updated at or before")


class BackfillIssueOut(BaseModel):
    sourceType: str
    sourceId: str
    code: str
    message: str


class BackfillCountsOut(BaseModel):
    created: int
    updated: int
    skipped: int
    errors: int
    issues: list[BackfillIssueOut] = Field(default_factory=list)


class BackfillResponse(BaseModel):
    tenantId: str
    commitments: BackfillCountsOut
    actuals: BackfillCountsOut
    packagesRecomputed: int
    stopped: bool
    traceId: Optional[str] = None


class CvrReportCreate(BaseModel):
    periodEnd: date
    reportType: str = Field(default="MONTHLY", description="MONTHLY, QUARTERLY, YEAR_END or AD_HOC")
    reportDate: Optional[date] = Field(default=None, description="Defaults to today")
    createdBy: Optional[str] = None


class CvrReportStatusUpdate(BaseModel):
    status: str
    userId: Optional[str] = None
    comments: Optional[str] = None
    rejectionReason: Optional[str] = None


class CvrReportOut(BaseModel):
    id: str
    projectId: str
    periodEnd: date
    reportDate: date
    reportType: str
    status: str
    totalBudget: float
    totalCommitted: float
    totalActual: float
    totalVariance: float
    totalRemaining: float
    snapshot: FinancialPositionOut
    capturedAt: Optional[datetime] = None
    createdBy: Optional[str] = None
    submittedBy: Optional[str] = None
    submittedAt: Optional[datetime] = None
    approvedBy: Optional[str] = None
    approvedAt: Optional[datetime] = None
    rejectedBy: Optional[str] = None
    rejectedAt: Optional[datetime] = None
    rejectionReason: Optional[str] = None
    comments: Optional[str] = None
    createdAt: datetime
    updatedAt: datetime


class CvrReportPageOut(BaseModel):
    reports: list[CvrReportOut] = Field(default_factory=list)
    total: int
    limit: int
    offset: int


class CvrReportSummaryOut(BaseModel):
    projectId: str
    counts: dict[str, int]
    totalReports: int
    latestApproved: Optional[CvrReportOut] = None
    latestSubmitted: Optional[CvrReportOut] = None


class MovementOut(BaseModel):
    budget: float
    committed: float
    actual: float
    variance: float
    remaining: float


class PackageMovementOut(BaseModel):
    packageId: Optional[str]
    packageName: str
    committed: float
    actual: float


class CvrReportComparisonOut(BaseModel):
    projectId: str
    fromReport: CvrReportOut
    toReport: CvrReportOut
    movement: MovementOut = Field(description="to minus from")
    packages: list[PackageMovementOut] = Field(default_factory=list)


class ErrorResponse(BaseModel):
    detail: str
    code: str


__all__ = [
    "BudgetLineOut",
    "PackagePositionOut",
    "FinancialPositionOut",
    "SourceBreakdownRowOut",
    "CvrBreakdownOut",
    "BackfillRequest",
    "BackfillIssueOut",
    "BackfillCountsOut",
    "BackfillResponse",
    "CvrReportCreate",
    "CvrReportStatusUpdate",
    "CvrReportOut",
    "CvrReportPageOut",
    "CvrReportSummaryOut",
    "MovementOut",
    "PackageMovementOut",
    "CvrReportComparisonOut",
    "ErrorResponse",
]
