"""Tests for the outbound request convention."""

import pytest

from offline_sync_queue.models import Entity, PendingMutation
from offline_sync_queue.routes import build_request, record_path


class TestBuildRequest:
    @pytest.mark.parametrize(
        "entity,path",
        [
            ("expense", "/api/expenses"),
            ("budget", "/api/budgets"),
            ("goal", "/api/goals"),
            ("meal", "/api/meals"),
        ],
    )
    def test_create_posts_to_collection(self, entity, path):
        request = build_request(PendingMutation(type="create", entity=entity, data={"x": 1}))

        assert request.method == "POST"
        assert request.path == path
        assert request.body == {"x": 1}

    def test_update_puts_to_record(self):
        request = build_request(
            PendingMutation(type="update", entity="budget", data={"id": "b7", "limit": 300})
        )

        assert request.method == "PUT"
        assert request.path == "/api/budgets/b7"
        assert request.body == {"id": "b7", "limit": 300}

    def test_delete_has_no_body(self):
        request = build_request(PendingMutation(type="delete", entity="goal", data={"id": "g2"}))

        assert request.method == "DELETE"
        assert request.path == "/api/goals/g2"
        assert request.body is None

    def test_numeric_target_id(self):
        request = build_request(PendingMutation(type="delete", entity="meal", data={"id": 42}))
        assert request.path == "/api/meals/42"


class TestRecordPath:
    def test_id_is_quoted(self):
        assert record_path(Entity.EXPENSE, "a/b c") == "/api/expenses/a%2Fb%20c"
