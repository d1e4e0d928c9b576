"""
Model-level tests — computed fields, per-status view, user helpers, parsing.
"""

from decimal import Decimal

import pytest

from cmcs.core.exceptions import ValidationError
from cmcs.models.claim import Claim, ClaimState
from cmcs.models.user import ROLE_ACADEMIC_MANAGER, ROLE_LECTURER
from cmcs.utils.helpers import parse_decimal
from conftest import make_claim, make_user


class TestClaimModel:

    @pytest.mark.parametrize("workload,rate,expected", [
        ("10", "250.00", "2500.00"),
        ("7.5", "333.33", "2499.975"),
        ("0.1", "0", "0"),
    ])
    def test_total_amount(self, workload, rate, expected):
        claim = Claim(workload=Decimal(workload), hourly_rate=Decimal(rate))
        assert claim.total_amount == Decimal(expected)

    def test_code(self, lecturer):
        claim = make_claim(lecturer, claim_id=7)
        assert claim.code == "CL-0007"
        assert Claim().code == "CL-NEW"

    def test_rejected_without_reason_is_invalid_state(self):
        claim = Claim(id=1, status="rejected", rejection_reason=None)
        with pytest.raises(ValueError):
            ClaimState.of(claim)

    def test_unknown_status_state(self):
        with pytest.raises(ValueError):
            ClaimState.of(Claim(id=1, status="archived"))

    def test_coordinator_approved_state_hides_approval_date(self, lecturer, coordinator):
        claim = make_claim(lecturer, "coordinator_approved", processor=coordinator)
        state = claim.state
        assert state.processed_by_user_id == coordinator.id
        assert state.approval_date is None
        assert not state.is_terminal

    def test_to_dict_with_documents(self, lecturer):
        claim = make_claim(lecturer)
        d = claim.to_dict(include_documents=True)
        assert d["documents"] == []
        assert d["status"] == "pending"


class TestUserModel:

    def test_full_name(self):
        user = make_user(ROLE_LECTURER, "Lerato", "Khumalo")
        assert user.full_name == "Lerato Khumalo"
        assert user.to_dict()["full_name"] == "Lerato Khumalo"

    def test_can_be_managed_by(self, lecturer, coordinator, manager):
        other_manager = make_user(ROLE_ACADEMIC_MANAGER, "Second", "Manager")
        assert lecturer.can_be_managed_by(manager)
        assert coordinator.can_be_managed_by(manager)
        assert not lecturer.can_be_managed_by(coordinator)
        assert not other_manager.can_be_managed_by(manager)


class TestParseDecimal:

    def test_float_goes_through_str(self):
        assert parse_decimal(7.5, "workload") == Decimal("7.5")

    def test_default(self):
        assert parse_decimal("", "rate", default=Decimal("250.00")) == Decimal("250.00")

    @pytest.mark.parametrize("value", [True, "NaN", "Infinity", "12,5", "ten", [7], {"v": 7}])
    def test_rejects(self, value):
        with pytest.raises(ValidationError):
            parse_decimal(value, "workload")

    @pytest.mark.parametrize("value,ok", [("12.50", True), ("12.500", True), (7.25, True),
                                          ("1E+3", True), ("0.125", False), ("0.001", False)])
    def test_places(self, value, ok):
        if ok:
            assert parse_decimal(value, "workload", places=2) == Decimal(str(value))
        else:
            with pytest.raises(ValidationError) as exc:
                parse_decimal(value, "workload", places=2)
            assert exc.value.details == {"workload": "precision"}
