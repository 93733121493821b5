"""
Lender notifications.

Formats covenant breach and contract renewal notices and posts them to the
configured lender webhook. Delivery problems are logged and reported through
``NotificationResult``; nothing here raises.
"""

import logging
from datetime import date, datetime, timezone
from typing import List, Literal, Optional
from uuid import UUID
from zoneinfo import ZoneInfo

import httpx
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from src.config import settings
from src.covenants.models import CovenantSeverity
from src.projects.models import Project

logger = logging.getLogger(__name__)

SEVERITY_LABEL = {
    CovenantSeverity.INFO: "[INFO]",
    CovenantSeverity.WARNING: "[WARNING]",
    CovenantSeverity.BREACH: "[BREACH]",
    CovenantSeverity.CRITICAL: "[CRITICAL]",
}

RENEWAL_ACTIONS = {
    "high": "Immediate attention required. This is a Tier 1 agreement critical to project bankability.",
    "medium": "Review renewal status and coordinate with project sponsor.",
    "low": "Monitor renewal progress.",
}


class CovenantBreachNotification(BaseModel):
    project_id: UUID
    project_name: str
    breach_type: str
    severity: CovenantSeverity
    current_value: float
    threshold_value: float
    impact_narrative: str = ""
    detected_at: datetime


class ContractRenewalNotification(BaseModel):
    project_id: UUID
    project_name: str
    agreement_id: UUID
    supplier_name: str
    expiry_date: date
    days_until_expiry: int
    annual_volume: float
    tier: str
    impact_level: Literal["low", "medium", "high"]


class NotificationResult(BaseModel):
    success: bool
    notified_count: int
    failed_count: int = 0


def _local_time(value: datetime) -> str:
    # naive datetimes are stored as UTC
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(ZoneInfo(settings.NOTIFICATION_TIMEZONE)).strftime("%d/%m/%Y, %I:%M:%S %p")


def format_breach_message(notification: CovenantBreachNotification) -> str:
    severity = CovenantSeverity(notification.severity)
    return "\n".join([
        f"{SEVERITY_LABEL[severity]} Covenant Breach Alert",
        "",
        f"Project: {notification.project_name}",
        f"Breach Type: {notification.breach_type}",
        f"Severity: {severity.value.upper()}",
        "",
        f"Current Value: {notification.current_value:g}",
        f"Threshold: {notification.threshold_value:g}",
        "",
        "Impact Assessment:",
        notification.impact_narrative,
        "",
        f"Detected: {_local_time(notification.detected_at)}",
        "",
        "Action Required: Review project covenant compliance and contact project sponsor if necessary.",
    ])


def format_renewal_message(notification: ContractRenewalNotification) -> str:
    return "\n".join([
        f"[{notification.impact_level.upper()}] Contract Renewal Alert",
        "",
        f"Project: {notification.project_name}",
        f"Supplier: {notification.supplier_name}",
        f"Agreement Tier: {notification.tier}",
        "",
        f"Expiry Date: {notification.expiry_date.strftime('%d/%m/%Y')}",
        f"Days Until Expiry: {notification.days_until_expiry}",
        "",
        f"Annual Volume: {notification.annual_volume:,.0f} tonnes",
        f"Impact Level: {notification.impact_level.upper()}",
        "",
        f"Action Required: {RENEWAL_ACTIONS[notification.impact_level]}",
        "",
        "Please coordinate with the project sponsor to ensure timely contract renewal.",
    ])


async def _post_to_webhook(title: str, content: str, client: Optional[httpx.AsyncClient] = None) -> bool:
    if not settings.LENDER_WEBHOOK_URL:
        logger.warning("Lender notification skipped: LENDER_WEBHOOK_URL is not configured")
        return False

    payload = {"title": title, "content": content}
    try:
        if client is not None:
            resp = await client.post(settings.LENDER_WEBHOOK_URL, json=payload)
            resp.raise_for_status()
        else:
            async with httpx.AsyncClient(timeout=settings.NOTIFICATION_TIMEOUT_SECONDS) as owned:
                resp = await owned.post(settings.LENDER_WEBHOOK_URL, json=payload)
                resp.raise_for_status()
        return True
    except httpx.HTTPError as e:
        logger.error(f"Lender webhook delivery failed: {e}")
        return False


async def _project_exists(db: Optional[AsyncSession], project_id: UUID) -> bool:
    if db is None:
        return True
    return await db.get(Project, project_id) is not None


async def notify_lenders_of_covenant_breach(
    db: Optional[AsyncSession],
    notification: CovenantBreachNotification,
    client: Optional[httpx.AsyncClient] = None,
) -> NotificationResult:
    """
    Send one covenant breach notice.

    When no session is given the project lookup is skipped.
    """
    try:
        if not await _project_exists(db, notification.project_id):
            logger.error(f"Covenant breach notification: project {notification.project_id} not found")
            return NotificationResult(success=False, notified_count=0)

        sent = await _post_to_webhook(
            f"Covenant Breach: {notification.project_name}",
            format_breach_message(notification),
            client,
        )
    except Exception as e:
        logger.error(f"Error sending covenant breach notification for project {notification.project_id}: {e}")
        return NotificationResult(success=False, notified_count=0)

    if not sent:
        logger.error(f"Failed to send covenant breach notification for project {notification.project_id}")
        return NotificationResult(success=False, notified_count=0)
    logger.info(f"Covenant breach notification sent for project {notification.project_id}")
    return NotificationResult(success=True, notified_count=1)


async def notify_lenders_of_contract_renewal(
    db: Optional[AsyncSession],
    notification: ContractRenewalNotification,
    client: Optional[httpx.AsyncClient] = None,
) -> NotificationResult:
    try:
        if not await _project_exists(db, notification.project_id):
            logger.error(f"Contract renewal notification: project {notification.project_id} not found")
            return NotificationResult(success=False, notified_count=0)

        sent = await _post_to_webhook(
            f"Contract Renewal: {notification.project_name} - {notification.supplier_name}",
            format_renewal_message(notification),
            client,
        )
    except Exception as e:
        logger.error(f"Error sending contract renewal notification for project {notification.project_id}: {e}")
        return NotificationResult(success=False, notified_count=0)

    if not sent:
        logger.error(f"Failed to send contract renewal notification for project {notification.project_id}")
        return NotificationResult(success=False, notified_count=0)
    logger.info(
        f"Contract renewal notification sent for project {notification.project_id}, "
        f"agreement {notification.agreement_id}"
    )
    return NotificationResult(success=True, notified_count=1)


async def notify_lenders_of_multiple_breaches(
    db: Optional[AsyncSession],
    breaches: List[CovenantBreachNotification],
    client: Optional[httpx.AsyncClient] = None,
) -> NotificationResult:
    notified = failed = 0
    for breach in breaches:
        result = await notify_lenders_of_covenant_breach(db, breach, client)
        if result.success:
            notified += result.notified_count
        else:
            failed += 1
    return NotificationResult(success=failed == 0, notified_count=notified, failed_count=failed)


async def notify_lenders_of_multiple_renewals(
    db: Optional[AsyncSession],
    renewals: List[ContractRenewalNotification],
    client: Optional[httpx.AsyncClient] = None,
) -> NotificationResult:
    notified = failed = 0
    for renewal in renewals:
        result = await notify_lenders_of_contract_renewal(db, renewal, client)
        if result.success:
            notified += result.notified_count
        else:
            failed += 1
    return NotificationResult(success=failed == 0, notified_count=notified, failed_count=failed)
