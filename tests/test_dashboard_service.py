"""
Dashboard query tests — filters, ordering and counts per role view.
"""

import pytest

from cmcs.core.exceptions import PermissionDeniedError, ValidationError
from cmcs.services.dashboard_service import (
    coordinator_dashboard,
    home_summary,
    lecturer_history,
    manager_dashboard,
    uploadable_claims,
)
from cmcs.models.user import ROLE_LECTURER
from conftest import actor_for, days_ago, make_claim, make_user


@pytest.fixture()
def board(lecturer, other_lecturer, coordinator):
    """Five claims across two lecturers and every status."""
    return {
        "old_pending": make_claim(lecturer, "pending", submitted=days_ago(10)),
        "new_pending": make_claim(other_lecturer, "pending", submitted=days_ago(1)),
        "forwarded": make_claim(lecturer, "coordinator_approved", submitted=days_ago(5),
                                processor=coordinator),
        "approved": make_claim(lecturer, "approved", submitted=days_ago(20)),
        "rejected": make_claim(other_lecturer, "rejected", submitted=days_ago(15)),
    }


def _ids(claims):
    return [c.id for c in claims]


class TestCoordinatorDashboard:

    def test_default_filter_newest_first(self, board, coordinator):
        result = coordinator_dashboard(actor_for(coordinator))
        assert _ids(result["claims"]) == [
            board["new_pending"].id, board["forwarded"].id, board["old_pending"].id,
        ]

    def test_counts(self, board, coordinator):
        result = coordinator_dashboard(actor_for(coordinator))
        assert result["total_pending"] == 2
        assert result["coordinator_approved"] == 1
        assert result["waiting_for_manager"] == 1

    def test_status_override_replaces_default(self, board, coordinator):
        result = coordinator_dashboard(actor_for(coordinator), status="rejected")
        assert _ids(result["claims"]) == [board["rejected"].id]
        # Counts ignore the listing filter
        assert result["total_pending"] == 2

    def test_unknown_status_override(self, board, coordinator):
        with pytest.raises(ValidationError):
            coordinator_dashboard(actor_for(coordinator), status="archived")

    @pytest.mark.parametrize("term", ["thandi", "MOKO", "  okoen  "])
    def test_name_filter_case_insensitive_trimmed(self, term, board, coordinator):
        result = coordinator_dashboard(actor_for(coordinator), lecturer_name=term)
        assert _ids(result["claims"]) == [board["forwarded"].id, board["old_pending"].id]

    def test_blank_name_filter_ignored(self, board, coordinator):
        result = coordinator_dashboard(actor_for(coordinator), lecturer_name="   ")
        assert len(result["claims"]) == 3

    @pytest.mark.parametrize("term", ["_", "%", "t_andi"])
    def test_name_filter_wildcards_are_literal(self, term, board, coordinator):
        result = coordinator_dashboard(actor_for(coordinator), lecturer_name=term)
        assert result["claims"] == []

    def test_name_filter_matches_literal_underscore(self, board, coordinator):
        ruan = make_user(ROLE_LECTURER, "Ruan", "de_Villiers")
        theirs = make_claim(ruan)
        result = coordinator_dashboard(actor_for(coordinator), lecturer_name="E_V")
        assert _ids(result["claims"]) == [theirs.id]

    def test_name_and_status_combined(self, board, coordinator):
        result = coordinator_dashboard(actor_for(coordinator), lecturer_name="botha",
                                       status="pending")
        assert _ids(result["claims"]) == [board["new_pending"].id]

    def test_lecturer_denied(self, board, lecturer):
        with pytest.raises(PermissionDeniedError):
            coordinator_dashboard(actor_for(lecturer))


class TestManagerDashboard:

    def test_oldest_first(self, board, manager):
        result = manager_dashboard(actor_for(manager))
        assert _ids(result["claims"]) == [
            board["old_pending"].id, board["forwarded"].id, board["new_pending"].id,
        ]
        assert result["total_pending"] == 2
        assert result["coordinator_approved"] == 1

    def test_name_filter(self, board, manager):
        result = manager_dashboard(actor_for(manager), lecturer_name="Johan")
        assert _ids(result["claims"]) == [board["new_pending"].id]

    def test_admin_allowed_coordinator_denied(self, board, admin, coordinator):
        assert len(manager_dashboard(actor_for(admin))["claims"]) == 3
        with pytest.raises(PermissionDeniedError):
            manager_dashboard(actor_for(coordinator))


class TestLecturerViews:

    def test_history_own_claims_every_status(self, board, lecturer):
        claims = lecturer_history(actor_for(lecturer))
        assert _ids(claims) == [
            board["forwarded"].id, board["old_pending"].id, board["approved"].id,
        ]

    def test_uploadable_only_open(self, board, lecturer):
        claims = uploadable_claims(actor_for(lecturer))
        assert _ids(claims) == [board["forwarded"].id, board["old_pending"].id]

    def test_history_empty_for_new_user(self, board, admin):
        assert lecturer_history(actor_for(admin)) == []


class TestHomeSummary:

    def test_lecturer_sees_own_counts(self, board, other_lecturer):
        summary = home_summary(actor_for(other_lecturer))
        assert summary["pending_claims"] == 1
        assert summary["rejected_claims"] == 1
        assert summary["accepted_claims"] == 0
        assert summary["total_claims"] == 2
        assert _ids(summary["recent_claims"]) == [board["new_pending"].id, board["rejected"].id]

    def test_staff_sees_everything(self, board, manager):
        summary = home_summary(actor_for(manager))
        assert summary["total_claims"] == 5
        assert summary["coordinator_approved_claims"] == 1
        assert summary["accepted_claims"] == 1
        assert len(summary["recent_claims"]) == 5

    def test_recent_capped_at_five(self, lecturer, coordinator):
        for n in range(7):
            make_claim(lecturer, "pending", submitted=days_ago(n))
        summary = home_summary(actor_for(coordinator))
        assert len(summary["recent_claims"]) == 5
        assert summary["total_claims"] == 7
