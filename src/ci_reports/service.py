import logging
from datetime import timedelta
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.audit.models import AuditEvent, AuditEventType
from src.audit.service import AuditService
from src.ci_reports.models import (
    EMISSION_FIELDS,
    CarbonIntensityReport,
    CIReportStatus,
    VerifyAction,
)
from src.config import settings
from src.exceptions import (
    InvalidInputError,
    InvalidTransitionError,
    NotFoundError,
    PermissionDeniedError,
)
from src.feedstocks.models import VerificationLevel
from src.shared.availability import degrade_when_unavailable, require_store
from src.shared.models import utcnow

logger = logging.getLogger(__name__)

AUDIT_ENTITY = "ci_report"

# action -> (required status, resulting status, audit event)
VERIFY_TRANSITIONS = {
    VerifyAction.START_REVIEW: (CIReportStatus.SUBMITTED, CIReportStatus.UNDER_REVIEW, AuditEventType.CI_REVIEW_STARTED),
    VerifyAction.APPROVE: (CIReportStatus.UNDER_REVIEW, CIReportStatus.VERIFIED, AuditEventType.CI_REPORT_APPROVED),
    VerifyAction.REJECT: (CIReportStatus.UNDER_REVIEW, CIReportStatus.REJECTED, AuditEventType.CI_REPORT_REJECTED),
    VerifyAction.REQUEST_REVISION: (CIReportStatus.UNDER_REVIEW, CIReportStatus.DRAFT, AuditEventType.CI_REVISION_REQUESTED),
}

DEFAULT_REVISION_NOTE = "Please address the issues noted and resubmit."


def total_emissions(values: Dict[str, Any]) -> float:
    return round(sum(float(values.get(field) or 0) for field in EMISSION_FIELDS), 4)


def has_emission_data(report: CarbonIntensityReport) -> bool:
    # land use change and end of life can legitimately be negative
    if (report.scope3_end_of_life or 0) != 0:
        return True
    return any((getattr(report, field) or 0) > 0 for field in EMISSION_FIELDS)


class CIReportService:
    """
    Supplier carbon-intensity reports and their verification workflow.

    Suppliers edit drafts and submit them; auditors move submitted reports
    through review to ``verified`` or ``rejected``, or send them back to
    ``draft``. Every transition leaves an audit event.
    """

    def __init__(self, db: Optional[AsyncSession]):
        self.db = db

    async def _get_report(self, report_id: UUID) -> CarbonIntensityReport:
        report = await self.db.get(CarbonIntensityReport, report_id)
        if not report:
            raise NotFoundError("CI report", report_id)
        return report

    def _check_owner_draft(self, report: CarbonIntensityReport, supplier_id: UUID, verb: str) -> None:
        if report.supplier_id != supplier_id:
            raise PermissionDeniedError(f"Not authorized to {verb} this report")
        if CIReportStatus(report.status) != CIReportStatus.DRAFT:
            raise InvalidTransitionError("CI report", CIReportStatus(report.status).value, verb)

    async def create_report(self, supplier_id: UUID, fields: Dict[str, Any]) -> CarbonIntensityReport:
        require_store(self.db)
        values = {k: v for k, v in fields.items() if v is not None}
        for field in EMISSION_FIELDS:
            values.setdefault(field, 0.0)

        report = CarbonIntensityReport(
            supplier_id=supplier_id,
            status=CIReportStatus.DRAFT,
            total_emissions=total_emissions(values),
            **values,
        )
        self.db.add(report)
        await self.db.flush()
        AuditService(self.db).record(
            AUDIT_ENTITY, report.id, AuditEventType.CI_REPORT_CREATED,
            actor_id=supplier_id, new_status=CIReportStatus.DRAFT.value,
        )
        await self.db.commit()
        await self.db.refresh(report)

        logger.info(f"Created CI report {report.id} for supplier {supplier_id}")
        return report

    async def update_report(
        self, report_id: UUID, supplier_id: UUID, fields: Dict[str, Any]
    ) -> CarbonIntensityReport:
        require_store(self.db)
        report = await self._get_report(report_id)
        self._check_owner_draft(report, supplier_id, "update")

        changes = {k: v for k, v in fields.items() if v is not None}
        if not changes:
            raise InvalidInputError("No valid fields to update")
        for key, value in changes.items():
            setattr(report, key, value)
        if any(field in changes for field in EMISSION_FIELDS):
            report.total_emissions = total_emissions(
                {field: getattr(report, field) for field in EMISSION_FIELDS}
            )

        AuditService(self.db).record(
            AUDIT_ENTITY, report.id, AuditEventType.CI_REPORT_UPDATED,
            actor_id=supplier_id, detail={"updated_fields": sorted(changes)},
        )
        await self.db.commit()
        await self.db.refresh(report)
        return report

    async def delete_report(self, report_id: UUID, supplier_id: UUID) -> None:
        require_store(self.db)
        report = await self._get_report(report_id)
        self._check_owner_draft(report, supplier_id, "delete")
        await self.db.delete(report)
        await self.db.commit()
        logger.info(f"Deleted draft CI report {report_id}")

    async def submit_report(self, report_id: UUID, supplier_id: UUID) -> CarbonIntensityReport:
        require_store(self.db)
        report = await self._get_report(report_id)
        self._check_owner_draft(report, supplier_id, "submit")
        if not has_emission_data(report):
            raise InvalidInputError("Report must have at least some emission data before submission")

        report.status = CIReportStatus.SUBMITTED
        report.submitted_at = utcnow()
        report.verification_level = VerificationLevel.SELF_DECLARED
        AuditService(self.db).record(
            AUDIT_ENTITY, report.id, AuditEventType.CI_REPORT_SUBMITTED,
            actor_id=supplier_id,
            previous_status=CIReportStatus.DRAFT.value,
            new_status=CIReportStatus.SUBMITTED.value,
            notes="Report submitted for verification",
        )
        await self.db.commit()
        await self.db.refresh(report)

        logger.info(f"CI report {report_id} submitted for verification")
        return report

    async def verify_report(
        self,
        report_id: UUID,
        auditor_id: UUID,
        action: VerifyAction,
        notes: Optional[str] = None,
        rejection_reason: Optional[str] = None,
        expiry_days: Optional[int] = None,
    ) -> CarbonIntensityReport:
        """Apply an auditor action; see VERIFY_TRANSITIONS for what is allowed from where."""
        require_store(self.db)
        action = VerifyAction(action)
        report = await self._get_report(report_id)

        required, target, event_type = VERIFY_TRANSITIONS[action]
        previous = CIReportStatus(report.status)
        if previous != required:
            raise InvalidTransitionError("CI report", previous.value, target.value)
        if action == VerifyAction.REJECT and not rejection_reason:
            raise InvalidInputError("rejection_reason is required when rejecting")

        detail = None
        if action == VerifyAction.START_REVIEW:
            report.assigned_auditor_id = auditor_id
        elif action == VerifyAction.APPROVE:
            expiry_days = expiry_days or settings.CI_REPORT_DEFAULT_EXPIRY_DAYS
            now = utcnow()
            report.verified_at = now
            report.verified_by = auditor_id
            report.verification_level = VerificationLevel.THIRD_PARTY_AUDITED
            report.auditor_notes = notes or None
            report.expiry_date = (now + timedelta(days=expiry_days)).date()
            detail = {"expiry_days": expiry_days}
        elif action == VerifyAction.REJECT:
            report.rejection_reason = rejection_reason
            report.auditor_notes = notes or None
        else:
            report.auditor_notes = notes or DEFAULT_REVISION_NOTE
            report.assigned_auditor_id = None
        report.status = target

        AuditService(self.db).record(
            AUDIT_ENTITY, report.id, event_type,
            actor_id=auditor_id,
            previous_status=previous.value,
            new_status=target.value,
            notes=notes or rejection_reason or None,
            detail=detail,
        )
        await self.db.commit()
        await self.db.refresh(report)

        logger.info(f"CI report {report_id}: {action.value} ({previous.value} -> {target.value})")
        return report

    @degrade_when_unavailable()
    async def get_report(self, report_id: UUID) -> Optional[CarbonIntensityReport]:
        return await self.db.get(CarbonIntensityReport, report_id)

    @degrade_when_unavailable(list)
    async def list_reports(
        self, supplier_id: Optional[UUID] = None, status: Optional[CIReportStatus] = None
    ) -> List[CarbonIntensityReport]:
        stmt = select(CarbonIntensityReport)
        if supplier_id is not None:
            stmt = stmt.where(CarbonIntensityReport.supplier_id == supplier_id)
        if status is not None:
            stmt = stmt.where(CarbonIntensityReport.status == status)
        result = await self.db.execute(stmt.order_by(desc(CarbonIntensityReport.created_at)))
        return list(result.scalars().all())

    async def get_audit_history(self, report_id: UUID) -> List[AuditEvent]:
        return await AuditService(self.db).list_events(AUDIT_ENTITY, report_id)
