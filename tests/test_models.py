"""
tests/test_models.py
====================

Unit tests for the dataclasses, enums and validation in retainer.models.

Run:  pytest -q
"""

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from conftest import make_input
from retainer.errors import ValidationError
from retainer.models import (
    MAX_AMOUNT,
    ArchiveEntry,
    BillingFrequency,
    Contract,
    ContractInput,
    ContractState,
    ServiceType,
    validate_input,
)


def test_create_assigns_id_and_coerces_fields():
    c = Contract.create(make_input(amount="99.5", end_date="2024-12-31", company="  ACME  "))
    assert c.id
    assert c.amount == Decimal("99.50")
    assert c.billing_frequency is BillingFrequency.MONTHLY
    assert c.start_date == date(2024, 1, 1)
    assert c.end_date == date(2024, 12, 31)
    assert c.company == "ACME"
    assert c.comment is None


def test_ids_are_unique():
    assert Contract.create(make_input()).id != Contract.create(make_input()).id


def test_missing_required_fields_are_all_reported():
    with pytest.raises(ValidationError) as exc:
        validate_input(ContractInput())
    assert set(exc.value.errors) == {
        "last_name", "first_name", "service_types", "amount", "billing_frequency", "start_date",
    }


def test_blank_names_rejected():
    with pytest.raises(ValidationError) as exc:
        Contract.create(make_input(last_name="   "))
    assert "last_name" in exc.value.errors


def test_negative_amount_rejected():
    with pytest.raises(ValidationError) as exc:
        Contract.create(make_input(amount=-1))
    assert exc.value.errors["amount"] == "must not be negative"


def test_amount_capped_at_column_precision():
    with pytest.raises(ValidationError) as exc:
        Contract.create(make_input(amount="10000000000"))
    assert exc.value.errors["amount"] == f"must not exceed {MAX_AMOUNT}"

    largest = Contract.create(make_input(amount=MAX_AMOUNT))
    assert Contract.from_record(largest.to_record()).amount == MAX_AMOUNT


def test_zero_amount_allowed():
    assert Contract.create(make_input(amount=0)).amount == Decimal("0")


@pytest.mark.parametrize("amount", ["abc", None, True, "NaN"])
def test_non_numeric_amount_rejected(amount):
    with pytest.raises(ValidationError) as exc:
        Contract.create(make_input(amount=amount))
    assert "amount" in exc.value.errors


def test_unknown_service_type_rejected():
    with pytest.raises(ValidationError) as exc:
        Contract.create(make_input(service_types=["SEO", "Catering"]))
    assert "Catering" in exc.value.errors["service_types"]


def test_service_types_deduplicated_in_order():
    c = Contract.create(make_input(service_types=["Website Creation", "seo", "WEBSITE_CREATION"]))
    assert c.service_types == (ServiceType.WEBSITE_CREATION, ServiceType.SEO)


def test_end_before_start_rejected():
    with pytest.raises(ValidationError) as exc:
        Contract.create(make_input(start_date="2024-05-01", end_date="2024-04-30"))
    assert "end_date" in exc.value.errors


def test_unknown_frequency_rejected():
    with pytest.raises(ValidationError) as exc:
        Contract.create(make_input(billing_frequency="weekly"))
    assert "billing_frequency" in exc.value.errors


def test_monthly_equivalent():
    monthly = Contract.create(make_input(amount=1200, billing_frequency="monthly"))
    annual = Contract.create(make_input(amount=1200, billing_frequency=BillingFrequency.ANNUAL))
    assert monthly.monthly_equivalent == Decimal("1200")
    assert annual.monthly_equivalent == Decimal("100")


def test_is_active_between_inclusive_bounds():
    c = Contract.create(make_input(start_date="2024-03-31", end_date="2024-05-01"))
    assert c.is_active_between(date(2024, 3, 1), date(2024, 3, 31))
    assert c.is_active_between(date(2024, 5, 1), date(2024, 5, 31))
    assert not c.is_active_between(date(2024, 2, 1), date(2024, 2, 29))
    assert not c.is_active_between(date(2024, 6, 1), date(2024, 6, 30))


def test_record_uses_camel_case_and_iso_dates():
    c = Contract.create(make_input(service_types=["SEO", "Web Development"], end_date=date(2024, 6, 30)))
    record = c.to_record()
    assert record["lastName"] == "Doe"
    assert record["serviceTypes"] == ["SEO", "Web Development"]
    assert record["billingFrequency"] == "monthly"
    assert record["startDate"] == "2024-01-01"
    assert record["endDate"] == "2024-06-30"
    assert record["amount"] == 1200.0
    assert Contract.from_record(record) == c


def test_archive_record_keeps_back_reference():
    c = Contract.create(make_input(comment="own note"))
    entry = ArchiveEntry("arch-1", c, datetime(2024, 7, 1, 8, 0, tzinfo=timezone.utc), "client churned")
    record = entry.to_record()
    assert record["id"] == "arch-1"
    assert record["contractId"] == c.id
    assert record["comment"] == "own note"
    assert record["archiveComment"] == "client churned"
    restored = ArchiveEntry.from_record(record)
    assert restored == entry
    assert restored.contract_id == c.id


def test_naive_archive_timestamp_read_as_utc():
    c = Contract.create(make_input())
    record = ArchiveEntry("a", c, datetime(2024, 7, 1, tzinfo=timezone.utc)).to_record()
    record["archivedAt"] = "2024-07-01T00:00:00"
    assert ArchiveEntry.from_record(record).archived_at.tzinfo is not None


def test_states():
    c = Contract.create(make_input())
    assert c.state is ContractState.ACTIVE
    assert ArchiveEntry("a", c, datetime.now(timezone.utc)).state is ContractState.ARCHIVED
    assert str(ContractState.ARCHIVED) == "ARCHIVED"


def test_contract_is_immutable():
    c = Contract.create(make_input())
    with pytest.raises(AttributeError):
        c.amount = Decimal("1")
