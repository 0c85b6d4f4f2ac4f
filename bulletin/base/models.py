from django.db import models
from django.utils.timezone import now


class FailedTask(models.Model):
    when = models.DateTimeField(editable=False, default=now)
    task_id = models.CharField(max_length=255)
    name = models.CharField(max_length=255)
    args = models.JSONField(null=False, default=list)
    kwargs = models.JSONField(null=False, default=dict)
    exc = models.TextField(null=True, default=None, help_text="repr(exception)")  # noqa
    einfo = models.TextField(null=True, default=None, help_text="repr(einfo)")  # noqa

    class Meta:
        db_table = "failed_tasks"
        ordering = ["-when"]

    def __str__(self):  # pragma: no cover
        return self.task_id
