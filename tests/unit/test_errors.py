"""Unit tests for the migration error taxonomy."""

from figmigrate.errors import (
    AlreadyProcessed,
    ConcurrentModification,
    DependenciesNotReady,
    DependencyCycle,
    InvalidOperation,
    ItemNotFound,
    MigrationError,
    NotInitialized,
)


class TestMigrationErrors:
    """Test cases for error responses."""

    def test_base_to_dict(self):
        error = MigrationError("Something broke", item_id="1:1")

        assert error.to_dict() == {
            "status": "error",
            "message": "Migration error",
            "error": "Something broke",
            "code": "MigrationError",
            "item_id": "1:1",
        }

    def test_default_message(self):
        error = NotInitialized()

        assert "migration_init" in str(error)
        assert error.to_dict()["message"] == "No migration found"

    def test_item_not_found(self):
        assert ItemNotFound("x:1").to_dict()["error"] == "No component or page found with ID: x:1"
        assert ItemNotFound("x:1", "component").message == "No component found with ID: x:1"

    def test_already_processed(self):
        data = AlreadyProcessed("component", "Button", "skipped").to_dict()

        assert data["error"] == "Component Button is already skipped."
        assert data["item_status"] == "skipped"

    def test_dependencies_not_ready_lists_unresolved(self):
        data = DependenciesNotReady("Card", ["1:1", "3:1"]).to_dict()

        assert data["unresolved"] == ["1:1", "3:1"]
        assert "1:1, 3:1" in data["error"]

    def test_cycle_uses_names_when_given(self):
        error = DependencyCycle(["a", "b", "a"], ["A", "B", "A"])

        assert error.details["cycle"] == ["a", "b", "a"]
        assert "A -> B -> A" in error.message

    def test_all_are_migration_errors(self):
        for error in (InvalidOperation("no"), ConcurrentModification("a", "b")):
            assert isinstance(error, MigrationError)
            assert error.to_dict()["code"] == type(error).__name__
