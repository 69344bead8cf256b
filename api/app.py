"""
CVR ledger HTTP API.

Endpoints:
- GET  /projects/{project_id}/cvr            -> financial position by package
- GET  /projects/{project_id}/cvr/breakdown  -> totals per source type
- POST /ledger/backfill                      -> reconcile facts with source documents
- POST /projects/{project_id}/cvr/reports    -> freeze the position as a period report
- GET  /projects/{project_id}/cvr/reports    -> list period reports, newest period first
- GET  /projects/{project_id}/cvr/reports/summary -> report counts and latest sign-offs
- GET|DELETE /cvr/reports/{report_id}
- POST /cvr/reports/{report_id}/refresh      -> re-capture an in-progress report
- POST /cvr/reports/{report_id}/status       -> submit, approve, reject or reopen
- GET  /cvr/reports/{from_id}/compare/{to_id} -> movement between two reports

The tenant comes from the ``X-Tenant-Id`` header on every call.

Usage:
    uvicorn api.app:create_app --factory
"""
import logging
from typing import Callable, Iterator, Optional

from fastapi import Depends, FastAPI, Header, Query, Request, Response
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from api.schemas import (
    BackfillRequest,
    BackfillResponse,
    CvrBreakdownOut,
    CvrReportComparisonOut,
    CvrReportCreate,
    CvrReportOut,
    CvrReportPageOut,
    CvrReportStatusUpdate,
    CvrReportSummaryOut,
    ErrorResponse,
    FinancialPositionOut,
)
from core.events.domain_events import DomainEvents
from core.exceptions import DomainError, NotFoundError, ValidationError
from core.services.reports import report_as_dict
from infra.config import LedgerSettings
from infra.db.base import make_engine, make_session_factory
from infra.operational_support import OperationalSupport, bind_trace_id, get_operational_support
from infra.services import ServiceGraph, build_service_graph
from infra.version import get_app_version

logger = logging.getLogger(__name__)

TENANT_HEADER = "X-Tenant-Id"
TRACE_HEADER = "X-Trace-Id"

_ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
}


def _status_for(exc: DomainError) -> int:
    if isinstance(exc, ValidationError):
        return 400
    if isinstance(exc, NotFoundError):
        return 404
    return 422


def create_app(
    session_factory: Optional[Callable[[], Session]] = None,
    settings: Optional[LedgerSettings] = None,
    support: Optional[OperationalSupport] = None,
) -> FastAPI:
    settings = settings or LedgerSettings.from_env()
    if session_factory is None:
        session_factory = make_session_factory(make_engine(settings.database_url))
    support = support or get_operational_support(settings.resolved_log_dir)

    app = FastAPI(
        title="CVR Ledger API",
        version=get_app_version(),
        description="Cost-value reconciliation over contracts, variations and payment applications",
    )

    def get_services() -> Iterator[ServiceGraph]:
        session = session_factory()
        # request-scoped event bus: hooks never outlive the request's session
        graph = build_service_graph(session, settings, events=DomainEvents(), support=support)
        try:
            yield graph
        finally:
            graph.close()

    @app.middleware("http")
    async def trace_requests(request: Request, call_next):
        with bind_trace_id(request.headers.get(TRACE_HEADER)) as trace_id:
            response = await call_next(request)
            response.headers[TRACE_HEADER] = trace_id
            return response

    @app.exception_handler(DomainError)
    async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
        status = _status_for(exc)
        logger.warning("%s %s -> %s %s: %s", request.method, request.url.path, status, exc.code, exc)
        return JSONResponse(status_code=status, content={"detail": str(exc), "code": exc.code})

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok", "version": get_app_version()}

    @app.get(
        "/projects/{project_id}/cvr",
        response_model=FinancialPositionOut,
        responses=_ERROR_RESPONSES,
    )
    def get_project_cvr(
        project_id: str,
        tenant_id: Optional[str] = Header(default=None, alias=TENANT_HEADER),
        services: ServiceGraph = Depends(get_services),
    ) -> dict:
        position = services.ledger_service.get_financial_position(tenant_id or "", project_id)
        return position.as_dict()

    @app.get(
        "/projects/{project_id}/cvr/breakdown",
        response_model=CvrBreakdownOut,
        responses=_ERROR_RESPONSES,
    )
    def get_project_cvr_breakdown(
        project_id: str,
        tenant_id: Optional[str] = Header(default=None, alias=TENANT_HEADER),
        services: ServiceGraph = Depends(get_services),
    ) -> dict:
        breakdown = services.ledger_service.get_source_breakdown(tenant_id or "", project_id)
        return breakdown.as_dict()

    @app.post(
        "/ledger/backfill",
        response_model=BackfillResponse,
        responses=_ERROR_RESPONSES,
    )
    def run_backfill(
        body: Optional[BackfillRequest] = None,
        tenant_id: Optional[str] = Header(default=None, alias=TENANT_HEADER),
        services: ServiceGraph = Depends(get_services),
    ) -> dict:
        body = body or BackfillRequest()
        report = services.ledger_service.run_backfill(
            tenant_id or "",
            project_id=body.projectId,
            updated_from=body.since,
            updated_to=body.until,
        )
        return report.as_dict()

    @app.post(
        "/projects/{project_id}/cvr/reports",
        response_model=CvrReportOut,
        status_code=201,
        responses=_ERROR_RESPONSES,
    )
    def create_cvr_report(
        project_id: str,
        body: CvrReportCreate,
        tenant_id: Optional[str] = Header(default=None, alias=TENANT_HEADER),
        services: ServiceGraph = Depends(get_services),
    ) -> dict:
        report = services.report_service.create_report(
            tenant_id or "",
            project_id,
            body.periodEnd,
            report_type=body.reportType,
            report_date=body.reportDate,
            created_by=body.createdBy,
        )
        return report_as_dict(report)

    @app.get(
        "/projects/{project_id}/cvr/reports",
        response_model=CvrReportPageOut,
        responses=_ERROR_RESPONSES,
    )
    def list_cvr_reports(
        project_id: str,
        report_type: Optional[str] = Query(default=None, alias="reportType"),
        status: Optional[str] = Query(default=None),
        limit: int = Query(default=100),
        offset: int = Query(default=0),
        tenant_id: Optional[str] = Header(default=None, alias=TENANT_HEADER),
        services: ServiceGraph = Depends(get_services),
    ) -> dict:
        page = services.report_service.list_reports(
            tenant_id or "",
            project_id,
            report_type=report_type,
            status=status,
            limit=limit,
            offset=offset,
        )
        return page.as_dict()

    @app.get(
        "/projects/{project_id}/cvr/reports/summary",
        response_model=CvrReportSummaryOut,
        responses=_ERROR_RESPONSES,
    )
    def get_cvr_report_summary(
        project_id: str,
        tenant_id: Optional[str] = Header(default=None, alias=TENANT_HEADER),
        services: ServiceGraph = Depends(get_services),
    ) -> dict:
        return services.report_service.get_project_report_summary(tenant_id or "", project_id).as_dict()

    @app.get("/cvr/reports/{report_id}", response_model=CvrReportOut, responses=_ERROR_RESPONSES)
    def get_cvr_report(
        report_id: str,
        tenant_id: Optional[str] = Header(default=None, alias=TENANT_HEADER),
        services: ServiceGraph = Depends(get_services),
    ) -> dict:
        return report_as_dict(services.report_service.get_report(tenant_id or "", report_id))

    @app.post("/cvr/reports/{report_id}/refresh", response_model=CvrReportOut, responses=_ERROR_RESPONSES)
    def refresh_cvr_report(
        report_id: str,
        tenant_id: Optional[str] = Header(default=None, alias=TENANT_HEADER),
        services: ServiceGraph = Depends(get_services),
    ) -> dict:
        return report_as_dict(services.report_service.refresh_snapshot(tenant_id or "", report_id))

    @app.post("/cvr/reports/{report_id}/status", response_model=CvrReportOut, responses=_ERROR_RESPONSES)
    def update_cvr_report_status(
        report_id: str,
        body: CvrReportStatusUpdate,
        tenant_id: Optional[str] = Header(default=None, alias=TENANT_HEADER),
        services: ServiceGraph = Depends(get_services),
    ) -> dict:
        report = services.report_service.update_report_status(
            tenant_id or "",
            report_id,
            body.status,
            user_id=body.userId,
            comments=body.comments,
            rejection_reason=body.rejectionReason,
        )
        return report_as_dict(report)

    @app.delete("/cvr/reports/{report_id}", status_code=204, responses=_ERROR_RESPONSES)
    def delete_cvr_report(
        report_id: str,
        tenant_id: Optional[str] = Header(default=None, alias=TENANT_HEADER),
        services: ServiceGraph = Depends(get_services),
    ) -> Response:
        services.report_service.delete_report(tenant_id or "", report_id)
        return Response(status_code=204)

    @app.get(
        "/cvr/reports/{from_report_id}/compare/{to_report_id}",
        response_model=CvrReportComparisonOut,
        responses=_ERROR_RESPONSES,
    )
    def compare_cvr_reports(
        from_report_id: str,
        to_report_id: str,
        tenant_id: Optional[str] = Header(default=None, alias=TENANT_HEADER),
        services: ServiceGraph = Depends(get_services),
    ) -> dict:
        comparison = services.report_service.compare_reports(tenant_id or "", from_report_id, to_report_id)
        return comparison.as_dict()

    return app


__all__ = ["create_app", "TENANT_HEADER", "TRACE_HEADER"]
