"""Tests for FeeAuthorityService — права владельца, диапазон ставки, передача владения."""
import pytest

from paywall_ledger.core.exceptions import InvalidParameter, Unauthorized
from paywall_ledger.models.audit_log import AuditLog
from paywall_ledger.services.fee_authority.service import FeeAuthorityService


def test_reads(fee_authority):
    assert fee_authority.owner() == "platform"
    assert fee_authority.current_fee_rate() == 100


def test_owner_sets_rate(fee_authority):
    assert fee_authority.set_fee_rate("platform", 250) == 250
    assert fee_authority.current_fee_rate() == 250


@pytest.mark.parametrize("rate", [0, 1000])
def test_rate_bounds_inclusive(fee_authority, rate):
    fee_authority.set_fee_rate("platform", rate)
    assert fee_authority.current_fee_rate() == rate


def test_non_owner_cannot_set_rate(fee_authority):
    with pytest.raises(Unauthorized):
        fee_authority.set_fee_rate("mallory", 900)
    assert fee_authority.current_fee_rate() == 100


def test_non_owner_checked_before_parameters(fee_authority):
    with pytest.raises(Unauthorized):
        fee_authority.set_fee_rate("mallory", 5000)


@pytest.mark.parametrize("rate", [-1, 1001, 12.5, True])
def test_invalid_rate(fee_authority, rate):
    with pytest.raises(InvalidParameter):
        fee_authority.set_fee_rate("platform", rate)
    assert fee_authority.current_fee_rate() == 100


def test_transfer_ownership(fee_authority):
    fee_authority.transfer_ownership("platform", "treasury")

    assert fee_authority.owner() == "treasury"
    with pytest.raises(Unauthorized):
        fee_authority.set_fee_rate("platform", 10)
    fee_authority.set_fee_rate("treasury", 10)
    assert fee_authority.current_fee_rate() == 10


@pytest.mark.parametrize("new_owner", [None, "", "   ", "two words"])
def test_transfer_to_invalid_identity(fee_authority, new_owner):
    with pytest.raises(InvalidParameter):
        fee_authority.transfer_ownership("platform", new_owner)
    assert fee_authority.owner() == "platform"


def test_non_owner_cannot_transfer(fee_authority):
    with pytest.raises(Unauthorized):
        fee_authority.transfer_ownership("mallory", "mallory")
    assert fee_authority.owner() == "platform"


def test_mutations_are_audited(db, fee_authority):
    fee_authority.set_fee_rate("platform", 300)
    fee_authority.transfer_ownership("platform", "treasury")

    actions = sorted(row.action for row in db.query(AuditLog).all())
    assert actions == ["fee_rate_changed", "ownership_transferred"]


def test_ensure_initialized_keeps_existing_row(db, fee_authority):
    fee_authority.set_fee_rate("platform", 300)
    again = FeeAuthorityService(db).ensure_initialized(owner="someone", fee_rate=5)
    assert again.owner == "platform"
    assert again.fee_rate_ppt == 300


def test_lazy_seed_from_settings(db):
    from paywall_ledger.core.config import settings

    service = FeeAuthorityService(db)
    assert service.owner() == settings.fee_authority_owner
    assert service.current_fee_rate() == settings.fee_rate_ppt
