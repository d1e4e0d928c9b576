"""
Claim submission & read service tests.
"""

from decimal import Decimal

import pytest

from cmcs.core.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from cmcs.models import db
from cmcs.models.claim import Claim
from cmcs.services.claim_service import (
    get_claim_for_actor,
    list_all_claims,
    serialize_claims,
    submit_claim,
    upload_documents,
)
from conftest import actor_for, days_ago, make_claim, upload


def _form(**overrides):
    data = {"period": "2026-09", "workload": "12.5", "hourly_rate": "300",
            "description": "Second-year tutorials"}
    data.update(overrides)
    return data


class TestSubmitClaim:

    def test_creates_pending_claim_with_amount(self, lecturer, storage):
        result = submit_claim(actor_for(lecturer), _form(), storage=storage)

        claim = db.session.get(Claim, result["claim"].id)
        assert claim.status == "pending"
        assert claim.user_id == lecturer.id
        assert claim.amount == Decimal("3750.00")
        assert claim.total_amount == Decimal("12.5") * Decimal("300")
        assert result["message"] == "Claim submitted successfully!"

    def test_default_hourly_rate(self, lecturer, storage):
        result = submit_claim(actor_for(lecturer), _form(hourly_rate=None), storage=storage)
        assert result["claim"].hourly_rate == Decimal("250.00")

    @pytest.mark.parametrize("workload,rate", [("7.5", "333.33"), ("0.13", "250"), ("12.25", "99.99")])
    def test_stored_amount_matches_total_after_reload(self, workload, rate, lecturer, storage):
        result = submit_claim(actor_for(lecturer), _form(workload=workload, hourly_rate=rate),
                              storage=storage)
        db.session.expire_all()
        claim = db.session.get(Claim, result["claim"].id)
        assert claim.amount == claim.total_amount == Decimal(workload) * Decimal(rate)

    @pytest.mark.parametrize("overrides,field", [
        ({"workload": "0.125"}, "workload"),
        ({"hourly_rate": "250.001"}, "hourly_rate"),
    ])
    def test_more_than_two_decimal_places_rejected(self, overrides, field, lecturer, storage):
        with pytest.raises(ValidationError) as exc:
            submit_claim(actor_for(lecturer), _form(**overrides), storage=storage)
        assert exc.value.details[field] == f"{field} cannot have more than 2 decimal places"
        assert db.session.query(Claim).count() == 0

    @pytest.mark.parametrize("overrides,field", [
        ({"period": 202609}, "period"),
        ({"description": ["tutorials"]}, "description"),
        ({"workload": {"hours": 8}}, "workload"),
    ])
    def test_non_text_fields_rejected(self, overrides, field, lecturer, storage):
        with pytest.raises(ValidationError) as exc:
            submit_claim(actor_for(lecturer), _form(**overrides), storage=storage)
        assert field in exc.value.details

    def test_non_object_data_rejected(self, lecturer, storage):
        with pytest.raises(ValidationError):
            submit_claim(actor_for(lecturer), ["2026-09", "8"], storage=storage)

    def test_client_amount_ignored(self, lecturer, storage):
        result = submit_claim(actor_for(lecturer), _form(amount="999999"), storage=storage)
        assert result["claim"].amount == Decimal("3750.00")

    @pytest.mark.parametrize("overrides,field", [
        ({"period": ""}, "period"),
        ({"period": "x" * 21}, "period"),
        ({"workload": "0"}, "workload"),
        ({"workload": "abc"}, "workload"),
        ({"workload": None}, "workload"),
        ({"hourly_rate": "-1"}, "hourly_rate"),
        ({"description": "d" * 501}, "description"),
    ])
    def test_invalid_input(self, overrides, field, lecturer, storage):
        with pytest.raises(ValidationError) as exc:
            submit_claim(actor_for(lecturer), _form(**overrides), storage=storage)
        assert field in exc.value.details
        assert db.session.query(Claim).count() == 0

    def test_errors_aggregated(self, lecturer, storage):
        with pytest.raises(ValidationError) as exc:
            submit_claim(actor_for(lecturer), _form(period="", workload="0"), storage=storage)
        assert set(exc.value.details) == {"period", "workload"}

    @pytest.mark.parametrize("role_fixture", ["coordinator", "manager"])
    def test_only_lecturers_submit(self, role_fixture, request, storage):
        user = request.getfixturevalue(role_fixture)
        with pytest.raises(PermissionDeniedError, match="Only lecturers"):
            submit_claim(actor_for(user), _form(), storage=storage)

    def test_document_failures_keep_claim(self, lecturer, storage):
        result = submit_claim(
            actor_for(lecturer), _form(),
            [upload("timesheet.pdf"), upload("macro.exe")],
            storage=storage,
        )
        assert db.session.query(Claim).count() == 1
        assert len(result["documents"]["uploaded"]) == 1
        assert len(result["documents"]["errors"]) == 1
        assert result["message"].startswith("Claim submitted successfully!")
        assert "1 document(s) could not be uploaded" in result["message"]


class TestReads:

    def test_owner_reads_own_claim(self, lecturer):
        claim = make_claim(lecturer)
        assert get_claim_for_actor(claim.id, actor_for(lecturer)).id == claim.id

    def test_other_lecturer_forbidden(self, lecturer, other_lecturer):
        claim = make_claim(lecturer)
        with pytest.raises(PermissionDeniedError):
            get_claim_for_actor(claim.id, actor_for(other_lecturer))

    @pytest.mark.parametrize("role_fixture", ["coordinator", "manager", "admin"])
    def test_staff_read_any(self, role_fixture, request, lecturer):
        claim = make_claim(lecturer)
        staff = request.getfixturevalue(role_fixture)
        assert get_claim_for_actor(claim.id, actor_for(staff)).id == claim.id

    def test_missing(self, lecturer):
        with pytest.raises(NotFoundError):
            get_claim_for_actor(999, actor_for(lecturer))

    def test_list_all_newest_first(self, lecturer, other_lecturer, coordinator):
        older = make_claim(lecturer, submitted=days_ago(3))
        newer = make_claim(other_lecturer, submitted=days_ago(1))
        assert [c.id for c in list_all_claims(actor_for(coordinator))] == [newer.id, older.id]

    def test_list_all_staff_only(self, lecturer):
        with pytest.raises(PermissionDeniedError):
            list_all_claims(actor_for(lecturer))

    def test_serialize_resolves_names(self, lecturer, coordinator):
        claim = make_claim(lecturer, "coordinator_approved", processor=coordinator)
        (d,) = serialize_claims([claim])
        assert d["submitter"]["full_name"] == "Thandi Mokoena"
        assert d["processed_by"]["full_name"] == "Pieter van Wyk"
        assert d["code"] == f"CL-{claim.id:04d}"


class TestUploadDocuments:

    def test_message(self, lecturer, storage):
        claim = make_claim(lecturer)
        report = upload_documents(claim.id, actor_for(lecturer),
                                  [upload("a.pdf"), upload("b.docx")], storage=storage)
        assert report["message"] == f"2 document(s) uploaded successfully for claim CL-{claim.id:04d}!"

    def test_requires_files(self, lecturer, storage):
        claim = make_claim(lecturer)
        with pytest.raises(ValidationError, match="at least one document"):
            upload_documents(claim.id, actor_for(lecturer), [], storage=storage)

    def test_not_owner(self, lecturer, other_lecturer, storage):
        claim = make_claim(lecturer)
        with pytest.raises(NotFoundError):
            upload_documents(claim.id, actor_for(other_lecturer), [upload("a.pdf")],
                             storage=storage)
