"""
Unit tests for TaskDispatcher.
"""

from unittest.mock import Mock

import pytest

from soundpack.application.task_dispatcher import TaskDispatcher


@pytest.fixture
def local_dispatcher():
    dispatcher = TaskDispatcher(celery_app=None, max_workers=1)
    yield dispatcher
    dispatcher.shutdown()


class TestTaskDispatcher:
    """Test Celery publishing and the in-process fallback."""

    def test_publishes_to_celery_by_name(self):
        # Arrange
        celery_app = Mock()
        local_fn = Mock()
        dispatcher = TaskDispatcher(celery_app=celery_app)

        # Act
        result = dispatcher.dispatch("soundpack.tasks.record_download", local_fn, email="a@b.c")

        # Assert
        assert result is None
        celery_app.send_task.assert_called_once_with(
            "soundpack.tasks.record_download", kwargs={"email": "a@b.c"}
        )
        local_fn.assert_not_called()
        dispatcher.shutdown()

    def test_falls_back_locally_when_publish_fails(self):
        celery_app = Mock()
        celery_app.send_task.side_effect = ConnectionError("broker down")
        local_fn = Mock(return_value="done")
        dispatcher = TaskDispatcher(celery_app=celery_app)

        future = dispatcher.dispatch("task", local_fn, email="a@b.c")

        assert future.result(timeout=5) == "done"
        local_fn.assert_called_once_with(email="a@b.c")
        dispatcher.shutdown()

    def test_runs_locally_without_celery(self, local_dispatcher):
        local_fn = Mock(return_value=True)

        future = local_dispatcher.dispatch("task", local_fn, token="abc")

        assert future.result(timeout=5) is True
        local_fn.assert_called_once_with(token="abc")

    def test_local_errors_are_contained(self, local_dispatcher):
        local_fn = Mock(side_effect=RuntimeError("redis unreachable"))

        future = local_dispatcher.dispatch("task", local_fn)

        assert future.result(timeout=5) is None

    def test_dispatch_after_shutdown_returns_none(self):
        dispatcher = TaskDispatcher()
        dispatcher.shutdown()

        assert dispatcher.dispatch("task", Mock()) is None
