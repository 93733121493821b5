import logging
import re
from datetime import datetime, timedelta
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.audit.models import AuditEventType
from src.audit.service import AuditService
from src.config import settings
from src.covenants.models import CovenantSeverity
from src.covenants.schemas import CovenantBreachResponse
from src.covenants.service import CovenantService
from src.exceptions import InvalidInputError, InvalidTransitionError, NotFoundError
from src.lender.models import LenderReport, LenderReportStatus
from src.lender.schemas import (
    CovenantComplianceStatus,
    DashboardSummary,
    LenderDashboard,
    LenderReportResponse,
    SupplyPositionSummary,
)
from src.projects.models import Project
from src.shared.availability import degrade_when_unavailable, require_store
from src.shared.models import utcnow

logger = logging.getLogger(__name__)

REPORT_MONTH_PATTERN = re.compile(r"^(\d{4})-(0[1-9]|1[0-2])$")

# target status -> the only status it may be reached from
REPORT_TRANSITIONS = {
    LenderReportStatus.FINALIZED: LenderReportStatus.DRAFT,
    LenderReportStatus.SENT: LenderReportStatus.FINALIZED,
}


def parse_report_month(report_month: str) -> Tuple[int, int, int]:
    """Split ``YYYY-MM`` into (year, month, quarter)."""
    match = REPORT_MONTH_PATTERN.match(report_month or "")
    if not match:
        raise InvalidInputError(f"report_month must be YYYY-MM, got {report_month!r}")
    year, month = int(match.group(1)), int(match.group(2))
    return year, month, (month + 2) // 3


def summarize_compliance(breaches) -> CovenantComplianceStatus:
    severities = [CovenantSeverity(b.severity) for b in breaches]
    return CovenantComplianceStatus(
        compliant=len(severities) == 0,
        breaches=sum(1 for s in severities if s in (CovenantSeverity.BREACH, CovenantSeverity.CRITICAL)),
        warnings=sum(1 for s in severities if s == CovenantSeverity.WARNING),
    )


class LenderReportService:
    """
    Monthly lender reports and the lender dashboard.

    Report status only moves forward: draft -> finalized -> sent. Asking for
    the status a report already has is a no-op; anything else raises
    InvalidTransitionError, so a sent report can no longer change.
    """

    def __init__(self, db: Optional[AsyncSession]):
        self.db = db

    async def _get_report(self, report_id: UUID) -> LenderReport:
        report = await self.db.get(LenderReport, report_id)
        if not report:
            raise NotFoundError("Lender report", report_id)
        return report

    def _advance(self, report: LenderReport, target: LenderReportStatus) -> bool:
        current = LenderReportStatus(report.status)
        if current == target:
            return False
        if REPORT_TRANSITIONS[target] != current:
            raise InvalidTransitionError("lender report", current.value, target.value)
        report.status = target
        return True

    async def generate_monthly_report(
        self,
        project_id: UUID,
        report_month: str,
        generated_by: Optional[UUID] = None,
        executive_summary: Optional[str] = None,
        score_changes_narrative: Optional[str] = None,
        supply_position: Optional[SupplyPositionSummary] = None,
    ) -> UUID:
        """
        Insert a draft report for ``report_month``.

        Compliance is summarised from breaches recorded since the first day of
        the month. The supply position comes from the caller and is all zeros
        when not supplied.
        """
        require_store(self.db)
        year, month, quarter = parse_report_month(report_month)
        if not await self.db.get(Project, project_id):
            raise NotFoundError("Project", project_id)

        breaches = await CovenantService(self.db).get_covenant_breach_history(
            project_id, since=datetime(year, month, 1)
        )
        compliance = summarize_compliance(breaches)
        supply = supply_position or SupplyPositionSummary()

        report = LenderReport(
            project_id=project_id,
            report_month=report_month,
            report_year=year,
            report_quarter=quarter,
            generated_date=utcnow(),
            generated_by=generated_by,
            executive_summary=executive_summary or None,
            score_changes_narrative=score_changes_narrative or None,
            covenant_compliance_status=compliance.model_dump(),
            supply_position_summary=supply.model_dump(),
            evidence_count=0,
            evidence_types=[],
            status=LenderReportStatus.DRAFT,
            recipient_emails=[],
        )
        self.db.add(report)
        await self.db.flush()
        AuditService(self.db).record(
            "lender_report", report.id, AuditEventType.REPORT_GENERATED,
            actor_id=generated_by, new_status=LenderReportStatus.DRAFT.value,
            detail={"report_month": report_month, **compliance.model_dump()},
        )
        await self.db.commit()

        logger.info(f"Generated {report_month} lender report {report.id} for project {project_id}")
        return report.id

    async def finalize_report(
        self,
        report_id: UUID,
        report_pdf_url: Optional[str] = None,
        evidence_pack_url: Optional[str] = None,
    ) -> LenderReport:
        require_store(self.db)
        report = await self._get_report(report_id)
        if self._advance(report, LenderReportStatus.FINALIZED):
            report.finalized_date = utcnow()
            report.report_pdf_url = report_pdf_url or None
            report.evidence_pack_url = evidence_pack_url or None
            AuditService(self.db).record(
                "lender_report", report.id, AuditEventType.REPORT_FINALIZED,
                previous_status=LenderReportStatus.DRAFT.value,
                new_status=LenderReportStatus.FINALIZED.value,
            )
            await self.db.commit()
            await self.db.refresh(report)
            logger.info(f"Finalized lender report {report_id}")
        return report

    async def mark_report_sent(self, report_id: UUID) -> LenderReport:
        require_store(self.db)
        report = await self._get_report(report_id)
        if self._advance(report, LenderReportStatus.SENT):
            report.sent_date = utcnow()
            AuditService(self.db).record(
                "lender_report", report.id, AuditEventType.REPORT_SENT,
                previous_status=LenderReportStatus.FINALIZED.value,
                new_status=LenderReportStatus.SENT.value,
            )
            await self.db.commit()
            await self.db.refresh(report)
            logger.info(f"Marked lender report {report_id} as sent")
        return report

    @degrade_when_unavailable()
    async def get_report(self, report_id: UUID) -> Optional[LenderReport]:
        return await self.db.get(LenderReport, report_id)

    @degrade_when_unavailable()
    async def get_latest_report(self, project_id: UUID) -> Optional[LenderReport]:
        result = await self.db.execute(
            select(LenderReport)
            .where(LenderReport.project_id == project_id)
            .order_by(desc(LenderReport.report_month), desc(LenderReport.generated_date))
            .limit(1)
        )
        return result.scalar_one_or_none()

    @degrade_when_unavailable(list)
    async def get_project_reports(self, project_id: UUID) -> List[LenderReport]:
        result = await self.db.execute(
            select(LenderReport)
            .where(LenderReport.project_id == project_id)
            .order_by(desc(LenderReport.report_month), desc(LenderReport.generated_date))
        )
        return list(result.scalars().all())

    @degrade_when_unavailable()
    async def get_lender_dashboard_data(self, project_id: UUID) -> Optional[LenderDashboard]:
        """Alerts, recent breaches and the latest report in one read-only view."""
        covenants = CovenantService(self.db)
        alerts = await covenants.get_active_alerts(project_id)
        since = utcnow() - timedelta(days=settings.DASHBOARD_BREACH_WINDOW_DAYS)
        recent_breaches = await covenants.get_covenant_breach_history(project_id, since=since)
        latest_report = await self.get_latest_report(project_id)

        return LenderDashboard(
            alerts=alerts,
            recent_breaches=[CovenantBreachResponse.model_validate(b) for b in recent_breaches],
            latest_report=LenderReportResponse.model_validate(latest_report) if latest_report else None,
            summary=DashboardSummary(
                active_alerts=len(alerts),
                critical_alerts=sum(1 for a in alerts if a.severity == CovenantSeverity.CRITICAL),
                unresolved_breaches=sum(1 for b in recent_breaches if not b.resolved),
                last_report_date=latest_report.generated_date if latest_report else None,
            ),
        )
