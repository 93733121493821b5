import json
from datetime import date, datetime
from uuid import uuid4

import httpx
import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from src.config import settings
from src.covenants.models import CovenantSeverity
from src.lender import notifications
from src.lender.notifications import (
    ContractRenewalNotification,
    CovenantBreachNotification,
    format_breach_message,
    format_renewal_message,
    notify_lenders_of_contract_renewal,
    notify_lenders_of_covenant_breach,
    notify_lenders_of_multiple_breaches,
)

WEBHOOK = "https://hooks.example.test/lenders"


@pytest.fixture
def webhook(monkeypatch):
    monkeypatch.setattr(settings, "LENDER_WEBHOOK_URL", WEBHOOK)
    return WEBHOOK


def recording_client(status_code: int = 200):
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(status_code, json={"ok": status_code < 400})

    return httpx.AsyncClient(transport=httpx.MockTransport(handler)), requests


def breach_notice(project_id, **overrides) -> CovenantBreachNotification:
    values = dict(
        project_id=project_id,
        project_name="Riverina Renewable Diesel",
        breach_type="max_hhi",
        severity=CovenantSeverity.CRITICAL,
        current_value=4000,
        threshold_value=2500,
        impact_narrative="Single grower now supplies most of the feedstock.",
        # 23:30 UTC is 10:30 the next morning in Sydney (AEDT)
        detected_at=datetime(2025, 1, 14, 23, 30),
    )
    values.update(overrides)
    return CovenantBreachNotification(**values)


def renewal_notice(project_id, impact_level="high") -> ContractRenewalNotification:
    return ContractRenewalNotification(
        project_id=project_id,
        project_name="Riverina Renewable Diesel",
        agreement_id=uuid4(),
        supplier_name="Riverina Grain Co-op",
        expiry_date=date(2025, 6, 30),
        days_until_expiry=21,
        annual_volume=40000,
        tier="tier1",
        impact_level=impact_level,
    )


def test_breach_message_uses_sydney_time():
    message = format_breach_message(breach_notice(uuid4()))

    assert message.startswith("[CRITICAL] Covenant Breach Alert")
    assert "Severity: CRITICAL" in message
    assert "Current Value: 4000" in message
    assert "Threshold: 2500" in message
    assert "Detected: 15/01/2025, 10:30:00 AM" in message


@pytest.mark.parametrize(
    "impact_level, action",
    [
        ("high", "Immediate attention required."),
        ("medium", "Review renewal status"),
        ("low", "Monitor renewal progress."),
    ],
)
def test_renewal_message_action_follows_impact(impact_level, action):
    message = format_renewal_message(renewal_notice(uuid4(), impact_level))
    assert f"Action Required: {action}" in message
    assert "Annual Volume: 40,000 tonnes" in message
    assert "Expiry Date: 30/06/2025" in message


@pytest.mark.asyncio
async def test_breach_notification_posts_to_webhook(db_session: AsyncSession, project, webhook):
    client, requests = recording_client()
    async with client:
        result = await notify_lenders_of_covenant_breach(db_session, breach_notice(project.id), client)

    assert result.success is True
    assert result.notified_count == 1
    assert len(requests) == 1
    assert str(requests[0].url) == WEBHOOK
    payload = json.loads(requests[0].content)
    assert payload["title"] == "Covenant Breach: Riverina Renewable Diesel"
    assert "Breach Type: max_hhi" in payload["content"]


@pytest.mark.asyncio
async def test_unknown_project_is_not_sent(db_session: AsyncSession, webhook):
    client, requests = recording_client()
    async with client:
        result = await notify_lenders_of_covenant_breach(db_session, breach_notice(uuid4()), client)

    assert result.success is False
    assert result.notified_count == 0
    assert requests == []


@pytest.mark.asyncio
async def test_missing_webhook_is_not_sent(db_session: AsyncSession, project, monkeypatch):
    monkeypatch.setattr(settings, "LENDER_WEBHOOK_URL", None)
    client, requests = recording_client()
    async with client:
        result = await notify_lenders_of_contract_renewal(db_session, renewal_notice(project.id), client)

    assert result.success is False
    assert requests == []


@pytest.mark.asyncio
async def test_webhook_failure_is_reported_not_raised(db_session: AsyncSession, project, webhook):
    client, _ = recording_client(status_code=502)
    async with client:
        result = await notify_lenders_of_covenant_breach(db_session, breach_notice(project.id), client)

    assert result.success is False
    assert result.notified_count == 0


@pytest.mark.asyncio
async def test_batch_counts_successes_and_failures(db_session: AsyncSession, project, webhook):
    client, requests = recording_client()
    batch = [breach_notice(project.id), breach_notice(uuid4()), breach_notice(project.id, breach_type="min_tier1_coverage")]
    async with client:
        result = await notify_lenders_of_multiple_breaches(db_session, batch, client)

    assert result.success is False
    assert result.notified_count == 2
    assert result.failed_count == 1
    assert len(requests) == 2


@pytest.mark.asyncio
async def test_notify_endpoint_marks_breach(async_client, db_session: AsyncSession, project, webhook, monkeypatch):
    calls = []

    async def fake_post(title, content, client=None):
        calls.append(title)
        return True

    monkeypatch.setattr(notifications, "_post_to_webhook", fake_post)
    created = await async_client.post(f"/v1/projects/{project.id}/covenants/breaches", json={
        "covenant_type": "max_hhi",
        "actual_value": 4000,
        "threshold_value": 2500,
        "variance_percent": 60,
        "severity": "critical",
    })
    breach_id = created.json()["id"]

    response = await async_client.post(f"/v1/covenants/breaches/{breach_id}/notify-lenders")

    assert response.status_code == 200
    assert response.json()["success"] is True
    assert calls == ["Covenant Breach: Riverina Renewable Diesel"]

    breaches = await async_client.get(f"/v1/projects/{project.id}/covenants/breaches")
    assert breaches.json()[0]["lender_notified"] is True

    again = await async_client.post(f"/v1/covenants/breaches/{breach_id}/notify-lenders")
    assert again.status_code == 200
    assert again.json()["notified_count"] == 0
    assert len(calls) == 1
