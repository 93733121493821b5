import logging
from datetime import datetime
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.audit.models import AuditEventType
from src.audit.service import AuditService
from src.covenants.evaluator import check_covenant_compliance
from src.covenants.models import CovenantBreachEvent, CovenantSeverity, SEVERITY_RANK
from src.covenants.schemas import ActiveAlert, Covenant, CovenantCheckResult, CovenantMetrics
from src.exceptions import InvalidTransitionError, NotFoundError
from src.projects.models import Project
from src.shared.availability import degrade_when_unavailable, require_store
from src.shared.models import utcnow

logger = logging.getLogger(__name__)


class CovenantService:
    def __init__(self, db: Optional[AsyncSession]):
        self.db = db

    async def _get_project(self, project_id: UUID) -> Project:
        project = await self.db.get(Project, project_id)
        if not project:
            raise NotFoundError("Project", project_id)
        return project

    async def _get_breach(self, breach_id: UUID) -> CovenantBreachEvent:
        breach = await self.db.get(CovenantBreachEvent, breach_id)
        if not breach:
            raise NotFoundError("Covenant breach", breach_id)
        return breach

    def _stage_breach(
        self,
        project_id: UUID,
        covenant_type: str,
        actual_value: float,
        threshold_value: float,
        variance_percent: int,
        severity: CovenantSeverity,
        narrative_explanation: Optional[str] = None,
        impact_assessment: Optional[str] = None,
    ) -> CovenantBreachEvent:
        now = utcnow()
        breach = CovenantBreachEvent(
            project_id=project_id,
            covenant_type=covenant_type,
            breach_date=now,
            detected_date=now,
            severity=severity,
            actual_value=actual_value,
            threshold_value=threshold_value,
            variance_percent=variance_percent,
            narrative_explanation=narrative_explanation or None,
            impact_assessment=impact_assessment or None,
            resolved=False,
            lender_notified=False,
        )
        self.db.add(breach)
        return breach

    async def record_covenant_breach(
        self,
        project_id: UUID,
        covenant_type: str,
        actual_value: float,
        threshold_value: float,
        variance_percent: int,
        severity: CovenantSeverity,
        narrative_explanation: Optional[str] = None,
        impact_assessment: Optional[str] = None,
    ) -> UUID:
        """Persist an unresolved, un-notified breach event and return its id."""
        require_store(self.db)
        await self._get_project(project_id)

        breach = self._stage_breach(
            project_id, covenant_type, actual_value, threshold_value,
            variance_percent, severity, narrative_explanation, impact_assessment,
        )
        await self.db.flush()
        AuditService(self.db).record(
            "covenant_breach", breach.id, AuditEventType.BREACH_RECORDED,
            new_status=CovenantSeverity(severity).value,
            detail={"project_id": str(project_id), "covenant_type": covenant_type},
        )
        await self.db.commit()

        logger.info(f"Recorded {CovenantSeverity(severity).value} {covenant_type} event for project {project_id}")
        return breach.id

    @degrade_when_unavailable(list)
    async def get_covenant_breach_history(
        self,
        project_id: UUID,
        unresolved: bool = False,
        since: Optional[datetime] = None,
    ) -> List[CovenantBreachEvent]:
        """Breach events for a project, newest breach first."""
        stmt = select(CovenantBreachEvent).where(CovenantBreachEvent.project_id == project_id)
        if unresolved:
            stmt = stmt.where(CovenantBreachEvent.resolved == False)
        if since is not None:
            stmt = stmt.where(CovenantBreachEvent.breach_date >= since)
        result = await self.db.execute(stmt.order_by(desc(CovenantBreachEvent.breach_date)))
        return list(result.scalars().all())

    async def resolve_covenant_breach(
        self, breach_id: UUID, resolution_notes: str, resolved_by: UUID
    ) -> CovenantBreachEvent:
        require_store(self.db)
        breach = await self._get_breach(breach_id)
        if breach.resolved:
            raise InvalidTransitionError("covenant breach", "resolved", "resolved")

        breach.resolved = True
        breach.resolved_date = utcnow()
        breach.resolution_notes = resolution_notes
        breach.resolved_by = resolved_by

        AuditService(self.db).record(
            "covenant_breach", breach.id, AuditEventType.BREACH_RESOLVED,
            actor_id=resolved_by, notes=resolution_notes,
        )
        await self.db.commit()
        await self.db.refresh(breach)

        logger.info(f"Resolved covenant breach {breach_id}")
        return breach

    async def mark_lender_notified(self, breach_id: UUID) -> CovenantBreachEvent:
        require_store(self.db)
        breach = await self._get_breach(breach_id)
        if breach.lender_notified:
            return breach

        breach.lender_notified = True
        breach.notified_date = utcnow()
        AuditService(self.db).record("covenant_breach", breach.id, AuditEventType.LENDER_NOTIFIED)
        await self.db.commit()
        await self.db.refresh(breach)
        return breach

    async def run_compliance_check(
        self,
        project_id: UUID,
        covenants: List[Covenant],
        current_metrics: CovenantMetrics,
    ) -> Tuple[List[CovenantCheckResult], List[UUID]]:
        """
        Evaluate covenants and record every result that deserves attention
        (anything but ``info``) in one transaction.
        """
        require_store(self.db)
        await self._get_project(project_id)

        results = check_covenant_compliance(project_id, covenants, current_metrics)
        staged = [
            self._stage_breach(
                project_id,
                result.covenant_type,
                result.actual_value,
                result.threshold_value,
                result.variance_percent,
                result.severity,
            )
            for result in results
            if result.severity != CovenantSeverity.INFO
        ]
        await self.db.flush()
        audit = AuditService(self.db)
        for breach in staged:
            audit.record(
                "covenant_breach", breach.id, AuditEventType.BREACH_RECORDED,
                new_status=CovenantSeverity(breach.severity).value,
                detail={"project_id": str(project_id), "covenant_type": breach.covenant_type},
            )
        await self.db.commit()

        if staged:
            logger.info(f"Compliance check for project {project_id} recorded {len(staged)} event(s)")
        return results, [breach.id for breach in staged]

    @degrade_when_unavailable(list)
    async def get_active_alerts(self, project_id: UUID) -> List[ActiveAlert]:
        """Unresolved breaches as dashboard alerts: most severe first, then most recent."""
        result = await self.db.execute(
            select(CovenantBreachEvent).where(
                CovenantBreachEvent.project_id == project_id,
                CovenantBreachEvent.resolved == False,
            )
        )
        breaches = sorted(
            result.scalars().all(),
            key=lambda b: (SEVERITY_RANK[CovenantSeverity(b.severity)], b.breach_date),
            reverse=True,
        )
        return [
            ActiveAlert(
                id=breach.id,
                severity=breach.severity,
                title=f"Covenant Breach: {breach.covenant_type}",
                message=breach.narrative_explanation or f"{breach.covenant_type} breach detected",
                date=breach.breach_date,
                actual_value=breach.actual_value,
                threshold_value=breach.threshold_value,
                variance_percent=breach.variance_percent,
            )
            for breach in breaches
        ]
