from io import StringIO

from django.core.management import call_command

import pytest
from freezegun import freeze_time

from bulletin.accounts.models import User
from bulletin.news.models import IdempotencyRecord


@pytest.mark.django_db
class TestPruneIdempotencyRecords:
    @pytest.fixture(autouse=True)
    def prepare(self, db):
        user = User.objects.create(username="operator", password_hash="$argon2id$unused")
        with freeze_time("2024-03-01 12:00:00"):
            IdempotencyRecord.objects.create(user=user, idempotency_key="week-old")
        with freeze_time("2024-03-07 06:00:00"):
            IdempotencyRecord.objects.create(user=user, idempotency_key="day-old")
        with freeze_time("2024-03-08 11:00:00"):
            IdempotencyRecord.objects.create(user=user, idempotency_key="fresh")

    def keys(self):
        return set(IdempotencyRecord.objects.values_list("idempotency_key", flat=True))

    @freeze_time("2024-03-08 12:00:00")
    def test_default_retention(self, settings, metricsmock):
        settings.IDEMPOTENCY_RECORD_TTL_HOURS = 48
        out = StringIO()
        call_command("prune_idempotency_records", stdout=out)

        assert self.keys() == {"fresh", "day-old"}
        assert "Deleted 1 idempotency records" in out.getvalue()
        metricsmock.assert_gauge_once("news.idempotency.pruned", 1)

    @freeze_time("2024-03-08 12:00:00")
    def test_hours_option(self):
        call_command("prune_idempotency_records", "--hours", "24", stdout=StringIO())
        assert self.keys() == {"fresh"}
