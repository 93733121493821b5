from datetime import timedelta
from uuid import uuid4

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from src.audit.models import AuditEventType
from src.ci_reports.models import CIReportStatus, VerifyAction
from src.ci_reports.service import CIReportService, total_emissions
from src.exceptions import InvalidInputError, InvalidTransitionError, PermissionDeniedError
from src.feedstocks.models import VerificationLevel
from src.shared.models import utcnow

SUPPLIER = uuid4()
AUDITOR = uuid4()

EMISSIONS = {
    "scope1_cultivation": 12.5,
    "scope1_processing": 4.0,
    "scope1_transport": 1.5,
    "scope2_electricity": 2.0,
    "scope3_land_use_change": -3.0,
}


async def submitted_report(db: AsyncSession):
    service = CIReportService(db)
    report = await service.create_report(SUPPLIER, dict(EMISSIONS))
    return await service.submit_report(report.id, SUPPLIER)


async def report_under_review(db: AsyncSession):
    report = await submitted_report(db)
    return await CIReportService(db).verify_report(report.id, AUDITOR, VerifyAction.START_REVIEW)


def test_total_emissions_sums_all_scopes():
    assert total_emissions(EMISSIONS) == 17.0
    assert total_emissions({}) == 0


@pytest.mark.asyncio
async def test_create_report_is_a_draft_with_totals(db_session: AsyncSession):
    report = await CIReportService(db_session).create_report(SUPPLIER, dict(EMISSIONS))

    assert report.status == CIReportStatus.DRAFT
    assert report.total_emissions == 17.0
    assert report.scope3_end_of_life == 0


@pytest.mark.asyncio
async def test_update_recomputes_total(db_session: AsyncSession):
    service = CIReportService(db_session)
    report = await service.create_report(SUPPLIER, dict(EMISSIONS))

    updated = await service.update_report(report.id, SUPPLIER, {"scope2_electricity": 5.0})

    assert updated.total_emissions == 20.0


@pytest.mark.asyncio
async def test_only_the_owner_may_edit(db_session: AsyncSession):
    service = CIReportService(db_session)
    report = await service.create_report(SUPPLIER, dict(EMISSIONS))

    with pytest.raises(PermissionDeniedError):
        await service.update_report(report.id, uuid4(), {"scope2_electricity": 5.0})
    with pytest.raises(PermissionDeniedError):
        await service.submit_report(report.id, uuid4())


@pytest.mark.asyncio
async def test_empty_update_is_rejected(db_session: AsyncSession):
    service = CIReportService(db_session)
    report = await service.create_report(SUPPLIER, dict(EMISSIONS))
    with pytest.raises(InvalidInputError):
        await service.update_report(report.id, SUPPLIER, {"calculation_notes": None})


@pytest.mark.asyncio
async def test_submit_requires_emission_data(db_session: AsyncSession):
    service = CIReportService(db_session)
    report = await service.create_report(SUPPLIER, {})
    with pytest.raises(InvalidInputError):
        await service.submit_report(report.id, SUPPLIER)


@pytest.mark.asyncio
async def test_submit_marks_self_declared(db_session: AsyncSession):
    report = await submitted_report(db_session)

    assert report.status == CIReportStatus.SUBMITTED
    assert report.submitted_at is not None
    assert report.verification_level == VerificationLevel.SELF_DECLARED


@pytest.mark.asyncio
async def test_submitted_reports_are_locked(db_session: AsyncSession):
    service = CIReportService(db_session)
    report = await submitted_report(db_session)

    with pytest.raises(InvalidTransitionError):
        await service.update_report(report.id, SUPPLIER, {"scope2_electricity": 1.0})
    with pytest.raises(InvalidTransitionError):
        await service.delete_report(report.id, SUPPLIER)


@pytest.mark.asyncio
async def test_start_review_assigns_auditor(db_session: AsyncSession):
    report = await report_under_review(db_session)

    assert report.status == CIReportStatus.UNDER_REVIEW
    assert report.assigned_auditor_id == AUDITOR


@pytest.mark.asyncio
async def test_approve_sets_verifier_level_and_expiry(db_session: AsyncSession):
    report = await report_under_review(db_session)

    approved = await CIReportService(db_session).verify_report(
        report.id, AUDITOR, VerifyAction.APPROVE, notes="Evidence pack complete", expiry_days=180
    )

    assert approved.status == CIReportStatus.VERIFIED
    assert approved.verified_by == AUDITOR
    assert approved.verified_at is not None
    assert approved.verification_level == VerificationLevel.THIRD_PARTY_AUDITED
    assert approved.expiry_date == (utcnow() + timedelta(days=180)).date()
    assert approved.auditor_notes == "Evidence pack complete"


@pytest.mark.asyncio
async def test_reject_requires_a_reason(db_session: AsyncSession):
    service = CIReportService(db_session)
    report = await report_under_review(db_session)

    with pytest.raises(InvalidInputError):
        await service.verify_report(report.id, AUDITOR, VerifyAction.REJECT)

    rejected = await service.verify_report(
        report.id, AUDITOR, VerifyAction.REJECT, rejection_reason="Transport emissions unsupported"
    )
    assert rejected.status == CIReportStatus.REJECTED
    assert rejected.rejection_reason == "Transport emissions unsupported"


@pytest.mark.asyncio
async def test_request_revision_returns_to_draft(db_session: AsyncSession):
    service = CIReportService(db_session)
    report = await report_under_review(db_session)

    revised = await service.verify_report(report.id, AUDITOR, VerifyAction.REQUEST_REVISION)

    assert revised.status == CIReportStatus.DRAFT
    assert revised.assigned_auditor_id is None
    assert revised.auditor_notes == "Please address the issues noted and resubmit."
    # the supplier can edit and resubmit
    await service.update_report(report.id, SUPPLIER, {"scope1_transport": 2.5})
    resubmitted = await service.submit_report(report.id, SUPPLIER)
    assert resubmitted.status == CIReportStatus.SUBMITTED


@pytest.mark.parametrize("action", [VerifyAction.APPROVE, VerifyAction.REJECT, VerifyAction.REQUEST_REVISION])
@pytest.mark.asyncio
async def test_review_actions_need_a_review_in_progress(db_session: AsyncSession, action):
    report = await submitted_report(db_session)
    with pytest.raises(InvalidTransitionError):
        await CIReportService(db_session).verify_report(
            report.id, AUDITOR, action, rejection_reason="r"
        )


@pytest.mark.asyncio
async def test_delete_draft(db_session: AsyncSession):
    service = CIReportService(db_session)
    report = await service.create_report(SUPPLIER, dict(EMISSIONS))
    report_id = report.id

    await service.delete_report(report_id, SUPPLIER)

    assert await service.get_report(report_id) is None


@pytest.mark.asyncio
async def test_audit_history_lists_every_transition(db_session: AsyncSession):
    service = CIReportService(db_session)
    report = await report_under_review(db_session)
    await service.verify_report(report.id, AUDITOR, VerifyAction.APPROVE)

    history = await service.get_audit_history(report.id)

    assert [e.event_type for e in history] == [
        AuditEventType.CI_REPORT_APPROVED,
        AuditEventType.CI_REVIEW_STARTED,
        AuditEventType.CI_REPORT_SUBMITTED,
        AuditEventType.CI_REPORT_CREATED,
    ]
    assert history[0].previous_status == "under_review"
    assert history[0].new_status == "verified"
    assert history[0].detail == {"expiry_days": 365}
