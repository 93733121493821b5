from uuid import uuid4

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from src.covenants.models import CovenantSeverity
from src.covenants.service import CovenantService
from src.exceptions import InvalidInputError, InvalidTransitionError, NotFoundError
from src.lender.models import LenderReportStatus
from src.lender.schemas import SupplyPositionSummary
from src.lender.service import LenderReportService, parse_report_month
from src.shared.models import utcnow


def current_month() -> str:
    return utcnow().strftime("%Y-%m")


@pytest.mark.parametrize(
    "month, expected",
    [("2025-01", (2025, 1, 1)), ("2025-03", (2025, 3, 1)), ("2025-04", (2025, 4, 2)), ("2025-12", (2025, 12, 4))],
)
def test_parse_report_month(month, expected):
    assert parse_report_month(month) == expected


@pytest.mark.parametrize("month", ["2025-13", "2025-1", "March 2025", ""])
def test_parse_report_month_rejects_bad_input(month):
    with pytest.raises(InvalidInputError):
        parse_report_month(month)


@pytest.mark.asyncio
async def test_month_without_breaches_is_compliant_draft(db_session: AsyncSession, project):
    service = LenderReportService(db_session)

    report_id = await service.generate_monthly_report(project.id, "2025-03")
    report = await service.get_report(report_id)

    assert report.status == LenderReportStatus.DRAFT
    assert report.covenant_compliance_status == {"compliant": True, "breaches": 0, "warnings": 0}
    assert report.report_year == 2025
    assert report.report_quarter == 1
    assert report.supply_position_summary == {
        "tier1_coverage": 0, "tier2_coverage": 0, "total_suppliers": 0, "hhi": 0,
    }
    assert report.evidence_count == 0


@pytest.mark.asyncio
async def test_compliance_summary_counts_breaches_and_warnings(db_session: AsyncSession, project):
    covenants = CovenantService(db_session)
    for severity in (CovenantSeverity.WARNING, CovenantSeverity.BREACH, CovenantSeverity.CRITICAL):
        await covenants.record_covenant_breach(project.id, "max_hhi", 3000, 2500, 20, severity)

    service = LenderReportService(db_session)
    report_id = await service.generate_monthly_report(
        project.id,
        current_month(),
        executive_summary="Supply concentration above covenant.",
        supply_position=SupplyPositionSummary(tier1_coverage=72, tier2_coverage=18, total_suppliers=4, hhi=3000),
    )
    report = await service.get_report(report_id)

    assert report.covenant_compliance_status == {"compliant": False, "breaches": 2, "warnings": 1}
    assert report.supply_position_summary["total_suppliers"] == 4
    assert report.executive_summary == "Supply concentration above covenant."


@pytest.mark.asyncio
async def test_report_for_unknown_project(db_session: AsyncSession):
    with pytest.raises(NotFoundError):
        await LenderReportService(db_session).generate_monthly_report(uuid4(), "2025-03")


@pytest.mark.asyncio
async def test_finalize_then_send(db_session: AsyncSession, project):
    service = LenderReportService(db_session)
    report_id = await service.generate_monthly_report(project.id, "2025-03")

    finalized = await service.finalize_report(report_id, "https://files.abfi.io/r.pdf", "https://files.abfi.io/e.zip")
    assert finalized.status == LenderReportStatus.FINALIZED
    assert finalized.report_pdf_url == "https://files.abfi.io/r.pdf"

    sent = await service.mark_report_sent(report_id)
    assert sent.status == LenderReportStatus.SENT
    assert sent.finalized_date is not None
    assert sent.sent_date is not None

    sent_at = sent.sent_date
    again = await service.mark_report_sent(report_id)
    assert again.status == LenderReportStatus.SENT
    assert again.sent_date == sent_at


@pytest.mark.asyncio
async def test_out_of_order_transitions_are_rejected(db_session: AsyncSession, project):
    service = LenderReportService(db_session)
    report_id = await service.generate_monthly_report(project.id, "2025-03")

    with pytest.raises(InvalidTransitionError):
        await service.mark_report_sent(report_id)

    await service.finalize_report(report_id)
    await service.mark_report_sent(report_id)
    with pytest.raises(InvalidTransitionError):
        await service.finalize_report(report_id)


@pytest.mark.asyncio
async def test_latest_report_orders_by_month(db_session: AsyncSession, project):
    service = LenderReportService(db_session)
    await service.generate_monthly_report(project.id, "2025-02")
    march = await service.generate_monthly_report(project.id, "2025-03")
    await service.generate_monthly_report(project.id, "2025-01")

    latest = await service.get_latest_report(project.id)
    reports = await service.get_project_reports(project.id)

    assert latest.id == march
    assert [r.report_month for r in reports] == ["2025-03", "2025-02", "2025-01"]


@pytest.mark.asyncio
async def test_dashboard_aggregates_alerts_breaches_and_latest_report(db_session: AsyncSession, project):
    covenants = CovenantService(db_session)
    critical = await covenants.record_covenant_breach(project.id, "max_hhi", 4000, 2500, 60, CovenantSeverity.CRITICAL)
    warning = await covenants.record_covenant_breach(project.id, "min_tier1_coverage", 75, 80, 6, CovenantSeverity.WARNING)
    resolved = await covenants.record_covenant_breach(project.id, "min_tier2_coverage", 5, 10, 50, CovenantSeverity.BREACH)
    await covenants.resolve_covenant_breach(resolved, "Tier 2 contract signed", uuid4())

    service = LenderReportService(db_session)
    report_id = await service.generate_monthly_report(project.id, current_month())

    dashboard = await service.get_lender_dashboard_data(project.id)

    assert [a.id for a in dashboard.alerts] == [critical, warning]
    assert len(dashboard.recent_breaches) == 3
    assert dashboard.latest_report.id == report_id
    assert dashboard.summary.active_alerts == 2
    assert dashboard.summary.critical_alerts == 1
    assert dashboard.summary.unresolved_breaches == 2
    assert dashboard.summary.last_report_date == dashboard.latest_report.generated_date


@pytest.mark.asyncio
async def test_dashboard_for_quiet_project(db_session: AsyncSession, project):
    dashboard = await LenderReportService(db_session).get_lender_dashboard_data(project.id)

    assert dashboard.alerts == []
    assert dashboard.recent_breaches == []
    assert dashboard.latest_report is None
    assert dashboard.summary.last_report_date is None


@pytest.mark.asyncio
async def test_dashboard_without_a_store():
    assert await LenderReportService(None).get_lender_dashboard_data(uuid4()) is None
