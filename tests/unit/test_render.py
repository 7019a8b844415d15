"""Unit tests for text rendering of responses."""

import pytest

from figmigrate.render import render_response


class TestRenderResponse:
    """Test cases for render_response."""

    def test_error(self):
        response = {"status": "error", "message": "Item not found", "error": "No component found with ID: x"}

        assert render_response("migration_start", response) == "Error: No component found with ID: x"

    def test_pending(self):
        assert render_response("migration_init", {"status": "pending", "message": "Working..."}) == "Working..."

    def test_unknown_operation(self):
        with pytest.raises(KeyError):
            render_response("migration_unknown", {"status": "success"})

    def test_init(self):
        text = render_response("migration_init", {
            "status": "success",
            "summary": {
                "totalComponents": 2, "totalPages": 1, "readyComponents": 1,
                "topReadyComponents": ["Button"],
            },
        })

        assert "Components: 2" in text
        assert "Ready to start: 1 components" in text
        assert "  - Button" in text

    def test_ready_items(self):
        text = render_response("migration_next", {
            "status": "success",
            "phase": "components",
            "items": [
                {"type": "component", "id": "2:1", "name": "Card", "instanceCount": 4, "dependencies": ["1:1"]},
                {"type": "page", "id": "9:1", "name": "Home", "componentsUsed": ["1:1", "2:1"]},
            ],
            "remaining": 3,
        })

        assert text.split("\n") == [
            "- [component] Card (4x) (deps: 1) [2:1]",
            "- [page] Home (2 components) [9:1]",
            "",
            "3 more items remaining",
        ]

    @pytest.mark.parametrize("phase, expected", [
        ("done", "Migration complete! All items have been processed."),
        ("components", "No items ready. Some items may be blocked by dependencies."),
    ])
    def test_no_ready_items(self, phase, expected):
        response = {"status": "success", "phase": phase, "items": [], "remaining": 0}

        assert render_response("migration_next", response) == expected

    def test_start(self):
        text = render_response("migration_start", {
            "status": "success",
            "type": "component",
            "name": "Card",
            "suggestedPath": "src/components/Card.tsx",
            "dependencies": ["1:1"],
            "definition": '[COMPONENT] "Card" (id: 2:1)',
        })

        assert text.startswith("Started working on component: Card")
        assert "Suggested path: src/components/Card.tsx" in text
        assert "Dependencies: 1:1" in text
        assert '## Figma Definition\n\n[COMPONENT] "Card" (id: 2:1)' in text

    def test_complete(self):
        text = render_response("migration_complete", {
            "status": "success",
            "completed": "Button",
            "newReady": ["Card"],
            "progress": {"done": 1, "total": 2},
        })

        assert text == "Completed: Button\nProgress: 1/2\nNewly ready: Card"

    def test_skip(self):
        text = render_response("migration_skip", {
            "status": "success", "skipped": "Icon", "reason": "library", "newReady": [],
        })

        assert text == "Skipped: Icon\nReason: library"

    def test_progress(self):
        text = render_response("migration_progress", {
            "status": "success",
            "progress": {
                "phase": "components",
                "components": {"total": 2, "done": 1, "inProgress": 1, "pending": 0, "skipped": 0},
                "pages": {"total": 1, "done": 0, "inProgress": 0, "ready": 0, "blocked": 1},
                "currentTask": "Card",
                "nextUp": [],
            },
        })

        assert "Phase: components" in text
        assert "  Done: 1/2" in text
        assert "  Blocked: 1" in text
        assert "Current: Card" in text
        assert "Next up" not in text
