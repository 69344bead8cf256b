from datetime import date
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from api.app import TENANT_HEADER, create_app
from core.exceptions import NotFoundError, ValidationError
from core.models import CvrReportStatus, CvrReportType

T = "t1"
SEPT = date(2026, 9, 30)
OCT = date(2026, 10, 31)


def _seed(services, project_id="P"):
    src = services["source_service"]
    pkg = src.add_package(T, project_id, "Groundworks")
    src.add_budget_line(T, project_id, "BL-01", Decimal("100000"), package_id=pkg.id)
    contract = src.add_contract(T, project_id, "Groundworks", Decimal("60000"), status="signed", package_id=pkg.id)
    afp = src.add_payment_application(T, contract.id, "AFP-01", Decimal("20000"))
    src.certify_payment_application(T, afp.id, Decimal("20000"))
    services["ledger_service"].run_backfill(T, project_id=project_id)
    return pkg, contract


def _certify_more(services, contract, amount, number="AFP-02"):
    src = services["source_service"]
    afp = src.add_payment_application(T, contract.id, number, amount)
    src.certify_payment_application(T, afp.id, amount)
    services["ledger_service"].run_backfill(T, project_id=contract.project_id)


def _approve(reports, report):
    reports.update_report_status(T, report.id, "SUBMITTED", user_id="qs")
    return reports.update_report_status(T, report.id, "APPROVED", user_id="cm")


def test_report_freezes_the_position_it_was_created_from(services):
    pkg, contract = _seed(services)
    reports = services["report_service"]

    report = reports.create_report(T, "P", SEPT, created_by="qs")

    assert report.status == CvrReportStatus.IN_PROGRESS
    assert report.report_type == CvrReportType.MONTHLY
    assert report.total_budget == Decimal("100000")
    assert report.total_committed == Decimal("60000")
    assert report.total_actual == Decimal("20000")
    assert report.total_variance == Decimal("40000")
    assert report.total_remaining == Decimal("80000")
    assert report.snapshot["totalActual"] == 20000
    assert report.snapshot["entries"][0]["packageId"] == pkg.id
    assert report.captured_at is not None

    _certify_more(services, contract, Decimal("5000"))

    stored = reports.get_report(T, report.id)
    assert stored.total_actual == Decimal("20000")
    assert stored.snapshot["totalActual"] == 20000


def test_refresh_recaptures_an_in_progress_report(services):
    _, contract = _seed(services)
    reports = services["report_service"]
    report = reports.create_report(T, "P", SEPT)
    _certify_more(services, contract, Decimal("5000"))

    refreshed = reports.refresh_snapshot(T, report.id)

    assert refreshed.total_actual == Decimal("25000")
    assert reports.get_report(T, report.id).snapshot["totalActual"] == 25000


def test_submitted_report_cannot_be_refreshed_or_deleted(services):
    _seed(services)
    reports = services["report_service"]
    report = reports.create_report(T, "P", SEPT)
    reports.update_report_status(T, report.id, CvrReportStatus.SUBMITTED, user_id="qs")

    with pytest.raises(ValidationError) as refresh_error:
        reports.refresh_snapshot(T, report.id)
    with pytest.raises(ValidationError) as delete_error:
        reports.delete_report(T, report.id)

    assert refresh_error.value.code == "REPORT_LOCKED"
    assert delete_error.value.code == "REPORT_LOCKED"


def test_sign_off_trail_is_recorded(services):
    _seed(services)
    reports = services["report_service"]
    report = reports.create_report(T, "P", SEPT)

    submitted = reports.update_report_status(T, report.id, "submitted", user_id="qs", comments="September close")
    approved = reports.update_report_status(T, report.id, "APPROVED", user_id="cm")

    assert submitted.submitted_by == "qs"
    assert submitted.submitted_at is not None
    assert approved.status == CvrReportStatus.APPROVED
    assert approved.approved_by == "cm"
    assert approved.comments == "September close"
    stored = reports.get_report(T, report.id)
    assert stored.status == CvrReportStatus.APPROVED
    assert stored.submitted_by == "qs"


def test_rejected_report_goes_back_to_the_preparer(services):
    _seed(services)
    reports = services["report_service"]
    report = reports.create_report(T, "P", SEPT)
    reports.update_report_status(T, report.id, "SUBMITTED")

    rejected = reports.update_report_status(
        T, report.id, "REJECTED", user_id="cm", rejection_reason="Accruals missing"
    )
    reopened = reports.update_report_status(T, report.id, "IN_PROGRESS")

    assert rejected.rejected_by == "cm"
    assert rejected.rejection_reason == "Accruals missing"
    assert reopened.status == CvrReportStatus.IN_PROGRESS
    assert reports.refresh_snapshot(T, report.id).status == CvrReportStatus.IN_PROGRESS


@pytest.mark.parametrize(
    "path",
    [
        ["APPROVED"],
        ["REJECTED"],
        ["SUBMITTED", "APPROVED", "IN_PROGRESS"],
        ["SUBMITTED", "REJECTED", "APPROVED"],
    ],
)
def test_invalid_transitions_are_refused(services, path):
    _seed(services)
    reports = services["report_service"]
    report = reports.create_report(T, "P", SEPT)
    *allowed, refused = path
    for status in allowed:
        reports.update_report_status(T, report.id, status)

    with pytest.raises(ValidationError) as exc:
        reports.update_report_status(T, report.id, refused)

    assert exc.value.code == "STATUS_TRANSITION_INVALID"


def test_unknown_status_is_a_validation_error(services):
    _seed(services)
    reports = services["report_service"]
    report = reports.create_report(T, "P", SEPT)

    with pytest.raises(ValidationError) as exc:
        reports.update_report_status(T, report.id, "ARCHIVED")

    assert exc.value.code == "STATUS_INVALID"


def test_deleted_report_disappears_from_reads(services):
    _seed(services)
    reports = services["report_service"]
    kept = reports.create_report(T, "P", SEPT)
    dropped = reports.create_report(T, "P", OCT)

    reports.delete_report(T, dropped.id)

    with pytest.raises(NotFoundError) as exc:
        reports.get_report(T, dropped.id)
    assert exc.value.code == "REPORT_NOT_FOUND"
    page = reports.list_reports(T, "P")
    assert [r.id for r in page.reports] == [kept.id]
    assert page.total == 1


def test_reports_are_tenant_scoped(services):
    _seed(services)
    report = services["report_service"].create_report(T, "P", SEPT)

    with pytest.raises(NotFoundError):
        services["report_service"].get_report("other", report.id)


def test_list_is_newest_period_first_and_paged(services):
    _seed(services)
    reports = services["report_service"]
    q3 = reports.create_report(T, "P", SEPT, report_type="quarterly")
    oct_ = reports.create_report(T, "P", OCT)
    aug = reports.create_report(T, "P", date(2026, 8, 31))

    page = reports.list_reports(T, "P", limit=2)
    assert [r.id for r in page.reports] == [oct_.id, q3.id]
    assert page.total == 3

    rest = reports.list_reports(T, "P", limit=2, offset=2)
    assert [r.id for r in rest.reports] == [aug.id]

    quarterly = reports.list_reports(T, "P", report_type=CvrReportType.QUARTERLY)
    assert [r.id for r in quarterly.reports] == [q3.id]
    assert quarterly.total == 1


@pytest.mark.parametrize("limit, offset, code", [(0, 0, "LIMIT_INVALID"), (501, 0, "LIMIT_INVALID"), (10, -1, "OFFSET_INVALID")])
def test_list_rejects_bad_paging(services, limit, offset, code):
    with pytest.raises(ValidationError) as exc:
        services["report_service"].list_reports(T, "P", limit=limit, offset=offset)

    assert exc.value.code == code


def test_create_requires_tenant_and_project(services):
    reports = services["report_service"]

    with pytest.raises(ValidationError) as tenant:
        reports.create_report(" ", "P", SEPT)
    with pytest.raises(ValidationError) as project:
        reports.create_report(T, "", SEPT)
    with pytest.raises(ValidationError) as report_type:
        reports.create_report(T, "P", SEPT, report_type="WEEKLY")

    assert tenant.value.code == "TENANT_REQUIRED"
    assert project.value.code == "PROJECT_REQUIRED"
    assert report_type.value.code == "REPORT_TYPE_INVALID"


def test_summary_counts_and_latest_sign_offs(services):
    _seed(services)
    reports = services["report_service"]
    aug = _approve(reports, reports.create_report(T, "P", date(2026, 8, 31)))
    sept = _approve(reports, reports.create_report(T, "P", SEPT))
    pending = reports.create_report(T, "P", OCT)
    reports.update_report_status(T, pending.id, "SUBMITTED")
    reports.create_report(T, "P", OCT, report_type="AD_HOC")

    summary = reports.get_project_report_summary(T, "P")

    assert summary.total == 4
    assert summary.counts[CvrReportStatus.APPROVED] == 2
    assert summary.counts[CvrReportStatus.SUBMITTED] == 1
    assert summary.counts[CvrReportStatus.IN_PROGRESS] == 1
    assert summary.counts[CvrReportStatus.REJECTED] == 0
    assert summary.latest_approved.id == sept.id != aug.id
    assert summary.latest_submitted.id == pending.id
    assert summary.as_dict()["counts"]["REJECTED"] == 0


def test_compare_gives_movement_between_periods(services):
    pkg, contract = _seed(services)
    reports = services["report_service"]
    sept = _approve(reports, reports.create_report(T, "P", SEPT))
    _certify_more(services, contract, Decimal("7500.50"))
    services["source_service"].add_contract(T, "P", "Drainage", Decimal("12000"), status="active", package_id=pkg.id)
    services["ledger_service"].run_backfill(T, project_id="P")
    oct_ = reports.create_report(T, "P", OCT)

    comparison = reports.compare_reports(T, sept.id, oct_.id)

    assert comparison.project_id == "P"
    assert comparison.movement.budget == Decimal("0.00")
    assert comparison.movement.committed == Decimal("12000.00")
    assert comparison.movement.actual == Decimal("7500.50")
    assert comparison.movement.variance == Decimal("-12000.00")
    assert comparison.movement.remaining == Decimal("-7500.50")
    [row] = comparison.packages
    assert row.package_id == pkg.id
    assert row.committed == Decimal("12000.00")
    assert row.actual == Decimal("7500.50")


def test_compare_refuses_reports_from_different_projects(services):
    _seed(services, "P")
    _seed(services, "Q")
    reports = services["report_service"]
    p = reports.create_report(T, "P", SEPT)
    q = reports.create_report(T, "Q", SEPT)

    with pytest.raises(ValidationError) as exc:
        reports.compare_reports(T, p.id, q.id)

    assert exc.value.code == "REPORT_PROJECT_MISMATCH"


# ---- HTTP surface ---------------------------------------------------------


@pytest.fixture
def client(session_factory, settings, support):
    app = create_app(session_factory=session_factory, settings=settings, support=support)
    with TestClient(app) as test_client:
        yield test_client


def test_report_workflow_over_http(client, services):
    _seed(services)
    headers = {TENANT_HEADER: T}

    created = client.post("/projects/P/cvr/reports", headers=headers, json={"periodEnd": "2026-09-30"})
    assert created.status_code == 201
    body = created.json()
    assert body["status"] == "IN_PROGRESS"
    assert body["reportType"] == "MONTHLY"
    assert body["totalActual"] == 20000
    assert body["snapshot"]["totalCommitted"] == 60000
    report_id = body["id"]

    submitted = client.post(
        f"/cvr/reports/{report_id}/status", headers=headers, json={"status": "SUBMITTED", "userId": "qs"}
    )
    assert submitted.status_code == 200
    assert submitted.json()["submittedBy"] == "qs"

    locked = client.delete(f"/cvr/reports/{report_id}", headers=headers)
    assert locked.status_code == 400
    assert locked.json()["code"] == "REPORT_LOCKED"

    listed = client.get("/projects/P/cvr/reports", headers=headers, params={"status": "SUBMITTED"})
    assert listed.status_code == 200
    assert listed.json()["total"] == 1

    summary = client.get("/projects/P/cvr/reports/summary", headers=headers)
    assert summary.status_code == 200
    assert summary.json()["latestSubmitted"]["id"] == report_id


def test_compare_and_delete_over_http(client, services):
    _, contract = _seed(services)
    headers = {TENANT_HEADER: T}
    first = client.post("/projects/P/cvr/reports", headers=headers, json={"periodEnd": "2026-09-30"}).json()
    _certify_more(services, contract, Decimal("1000"))
    second = client.post(
        "/projects/P/cvr/reports", headers=headers, json={"periodEnd": "2026-10-31", "reportType": "AD_HOC"}
    ).json()

    compared = client.get(f"/cvr/reports/{first['id']}/compare/{second['id']}", headers=headers)
    assert compared.status_code == 200
    assert compared.json()["movement"]["actual"] == 1000

    deleted = client.delete(f"/cvr/reports/{second['id']}", headers=headers)
    assert deleted.status_code == 204
    missing = client.get(f"/cvr/reports/{second['id']}", headers=headers)
    assert missing.status_code == 404
    assert missing.json()["code"] == "REPORT_NOT_FOUND"


def test_bad_transition_over_http_is_a_client_error(client, services):
    _seed(services)
    headers = {TENANT_HEADER: T}
    report = client.post("/projects/P/cvr/reports", headers=headers, json={"periodEnd": "2026-09-30"}).json()

    response = client.post(f"/cvr/reports/{report['id']}/status", headers=headers, json={"status": "APPROVED"})

    assert response.status_code == 400
    assert response.json()["code"] == "STATUS_TRANSITION_INVALID"
