from unittest.mock import patch

from django.core.management import call_command
from django.core.management.base import CommandError

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError


@patch("bulletin.base.management.commands.rqworker.get_worker")
class TestRQWorkerCommand:
    def test_defaults(self, mock_get_worker):
        call_command("rqworker")

        mock_get_worker.assert_called_once_with([])
        mock_get_worker.return_value.work.assert_called_once_with(burst=False, with_scheduler=True, max_jobs=None)

    def test_options(self, mock_get_worker):
        call_command("rqworker", "high", "low", "--burst", "--max-jobs", "10", "--without-scheduler")

        mock_get_worker.assert_called_once_with(["high", "low"])
        mock_get_worker.return_value.work.assert_called_once_with(burst=True, with_scheduler=False, max_jobs=10)

    def test_redis_down(self, mock_get_worker):
        mock_get_worker.return_value.work.side_effect = RedisConnectionError("Connection refused")

        with pytest.raises(CommandError, match="Could not connect to Redis"):
            call_command("rqworker", "--burst")
