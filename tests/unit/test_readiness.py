"""Unit tests for readiness propagation and phase derivation."""

import pytest

from figmigrate.models import ComponentTask, MigrationState, PageTask
from figmigrate.readiness import compute_stats, refresh, update_dependency_readiness


@pytest.fixture
def state():
    """A <- B, page P uses A and B, page Q uses nothing."""
    state = MigrationState(figma_file_key="key")
    state.components = {
        "a": ComponentTask(figma_id="a", name="A"),
        "b": ComponentTask(figma_id="b", name="B", dependencies=["a"]),
    }
    state.pages = {
        "p": PageTask(figma_id="p", frame_name="P", components_used=["a", "b"]),
        "q": PageTask(figma_id="q", frame_name="Q"),
    }
    return state


class TestUpdateDependencyReadiness:
    """Test cases for propagation."""

    def test_initial_flags(self, state):
        update_dependency_readiness(state)

        assert state.components["a"].dependencies_ready is True
        assert state.components["b"].dependencies_ready is False
        assert state.pages["p"].status == "blocked"
        assert state.pages["q"].status == "pending"

    @pytest.mark.parametrize("resolution", ["done", "skipped"])
    def test_resolution_unlocks_dependents(self, state, resolution):
        state.components["a"].status = resolution

        update_dependency_readiness(state)

        assert state.components["b"].dependencies_ready is True
        assert state.pages["p"].status == "blocked"

    def test_in_progress_does_not_resolve(self, state):
        state.components["a"].status = "in_progress"

        update_dependency_readiness(state)

        assert state.components["b"].dependencies_ready is False

    def test_page_unblocked_when_all_components_resolved(self, state):
        state.components["a"].status = "done"
        state.components["b"].status = "skipped"

        update_dependency_readiness(state)

        assert state.pages["p"].components_ready is True
        assert state.pages["p"].status == "pending"

    def test_page_never_returns_to_blocked(self, state):
        state.pages["p"].status = "in_progress"

        update_dependency_readiness(state)

        assert state.pages["p"].status == "in_progress"
        assert state.pages["p"].components_ready is False

    def test_idempotent(self, state):
        state.components["a"].status = "done"
        update_dependency_readiness(state)
        first = state.to_dict()

        update_dependency_readiness(state)

        assert state.to_dict() == first


class TestComputeStats:
    """Test cases for counts and phase."""

    def test_components_phase(self, state):
        refresh(state)

        assert state.stats.phase == "components"
        assert state.stats.total_components == 2
        assert state.stats.total_pages == 2
        assert state.stats.blocked_pages == 1

    def test_pages_phase(self, state):
        state.components["a"].status = "done"
        state.components["b"].status = "skipped"

        stats = compute_stats(state)

        assert stats.phase == "pages"
        assert stats.completed_components == 1
        assert stats.skipped_components == 1

    def test_done_phase(self, state):
        state.components["a"].status = "done"
        state.components["b"].status = "done"
        for page in state.pages.values():
            page.status = "done"

        stats = compute_stats(state)

        assert stats.phase == "done"
        assert stats.completed_pages == 2

    def test_no_pages_goes_straight_to_done(self, state):
        state.pages = {}
        state.components["a"].status = "done"
        state.components["b"].status = "done"

        assert compute_stats(state).phase == "done"

    def test_empty_state_is_done(self):
        assert compute_stats(MigrationState(figma_file_key="k")).phase == "done"
