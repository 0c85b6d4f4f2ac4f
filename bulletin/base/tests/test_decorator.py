from unittest.mock import patch

from django.test.utils import override_settings

from bulletin.base.tests.tasks import empty_job


class TestDecorator:
    @override_settings(RQ_RESULT_TTL=0)
    @override_settings(RQ_MAX_RETRIES=0)
    @patch("bulletin.base.decorators.get_queue")
    def test_rq_task(self, mock_get_queue, metricsmock):
        """
        Test that the decorator passes the correct arguments to the RQ job.
        """
        mock_queue = mock_get_queue.return_value

        empty_job.delay("arg1", extra="foo")

        mock_queue.enqueue_call.assert_called_once_with(
            empty_job,
            args=("arg1",),
            kwargs={"extra": "foo"},
            meta={"task_name": "bulletin.base.tests.tasks.empty_job"},
            retry=None,
            result_ttl=0,
        )
        metricsmock.assert_incr_once("base.tasks.enqueued", tags=["task:bulletin.base.tests.tasks.empty_job"])

    @override_settings(RQ_MAX_RETRIES=3, DEBUG=True)
    @patch("bulletin.base.decorators.get_queue")
    def test_rq_task_with_retries(self, mock_get_queue):
        empty_job.delay("arg1")

        retry = mock_get_queue.return_value.enqueue_call.call_args.kwargs["retry"]
        assert retry.max == 3
        assert retry.intervals == [5, 5, 5]
