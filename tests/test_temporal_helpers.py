from datetime import datetime, timedelta

from src.temporal import helpers

NOW = datetime(2025, 3, 15, 12, 0, 0)


def version(valid_from, valid_to=None, is_current=None, **fields):
    return {
        "valid_from": valid_from,
        "valid_to": valid_to,
        "is_current": valid_to is None if is_current is None else is_current,
        **fields,
    }


def test_open_current_version_is_current():
    assert helpers.is_entity_current(version(NOW)) is True


def test_closed_or_flagged_versions_are_not_current():
    assert helpers.is_entity_current(version(NOW, NOW + timedelta(days=1))) is False
    assert helpers.is_entity_current(version(NOW, is_current=False)) is False


def test_validity_interval_is_half_open():
    start, end = NOW, NOW + timedelta(days=10)
    v = version(start, end)
    assert helpers.was_entity_valid_at(v, start) is True
    assert helpers.was_entity_valid_at(v, end - timedelta(microseconds=1)) is True
    assert helpers.was_entity_valid_at(v, end) is False
    assert helpers.was_entity_valid_at(v, start - timedelta(seconds=1)) is False


def test_open_interval_is_valid_in_the_future():
    assert helpers.was_entity_valid_at(version(NOW), NOW + timedelta(days=3650)) is True


def test_iso_strings_are_accepted():
    v = version("2025-03-01T00:00:00", "2025-04-01T00:00:00")
    assert helpers.was_entity_valid_at(v, NOW) is True
    assert helpers.get_validity_period(v) == helpers.ValidityPeriod(
        datetime(2025, 3, 1), datetime(2025, 4, 1)
    )


def test_days_until_expiry_rounds_up():
    v = version(NOW - timedelta(days=30), NOW + timedelta(days=2, hours=1))
    assert helpers.days_until_expiry(v, now=NOW) == 3


def test_days_until_expiry_is_none_for_open_interval():
    assert helpers.days_until_expiry(version(NOW), now=NOW) is None
    assert helpers.is_expiring_soon(version(NOW), now=NOW) is False
    assert helpers.is_expired(version(NOW), now=NOW) is False


def test_expiring_soon_window():
    soon = version(NOW, NOW + timedelta(days=30))
    later = version(NOW, NOW + timedelta(days=31))
    assert helpers.is_expiring_soon(soon, now=NOW) is True
    assert helpers.is_expiring_soon(later, now=NOW) is False
    assert helpers.is_expiring_soon(later, threshold_days=45, now=NOW) is True


def test_expired_only_after_a_full_day_past():
    yesterday = version(NOW - timedelta(days=10), NOW - timedelta(days=1, hours=2))
    assert helpers.days_until_expiry(yesterday, now=NOW) == -1
    assert helpers.is_expired(yesterday, now=NOW) is True
    assert helpers.is_expiring_soon(yesterday, now=NOW) is False


def test_compare_versions_reports_changed_business_fields_only():
    old = version(NOW, NOW + timedelta(days=1), version_number=1, abfi_score=70, type="Canola",
                  version_reason="Initial")
    new = version(NOW + timedelta(days=1), version_number=2, abfi_score=82, type="Canola",
                  version_reason="Audit")

    assert helpers.compare_versions(old, new) == {"abfi_score": {"old": 70, "new": 82}}


def test_compare_versions_is_structural_for_nested_values():
    old = {"quality_parameters": {"moisture": 8, "oil": 42}}
    same = {"quality_parameters": {"oil": 42, "moisture": 8}}
    changed = {"quality_parameters": {"oil": 40, "moisture": 8}}

    assert helpers.compare_versions(old, same) == {}
    assert set(helpers.compare_versions(old, changed)) == {"quality_parameters"}


def test_compare_versions_includes_added_and_removed_fields():
    diff = helpers.compare_versions({"notes": "a"}, {"rating_grade": "A"})
    assert diff == {
        "notes": {"old": "a", "new": None},
        "rating_grade": {"old": None, "new": "A"},
    }
