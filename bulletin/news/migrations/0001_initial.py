import uuid

import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models

import bulletin.news.models


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("accounts", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Subscription",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("email", models.TextField(unique=True)),
                ("name", models.TextField()),
                ("subscribed_at", models.DateTimeField(default=django.utils.timezone.now)),
                (
                    "status",
                    models.CharField(
                        choices=[("pending_confirmation", "Pending confirmation"), ("confirmed", "Confirmed")],
                        default="pending_confirmation",
                        max_length=32,
                    ),
                ),
            ],
            options={
                "db_table": "subscriptions",
            },
        ),
        migrations.CreateModel(
            name="SubscriptionToken",
            fields=[
                (
                    "subscription_token",
                    models.CharField(
                        default=bulletin.news.models.generate_subscription_token,
                        max_length=25,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                ("created", models.DateTimeField(default=django.utils.timezone.now)),
                (
                    "subscription",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="tokens",
                        to="news.subscription",
                    ),
                ),
            ],
            options={
                "db_table": "subscription_tokens",
            },
        ),
        migrations.CreateModel(
            name="IdempotencyRecord",
            fields=[
                ("id", models.AutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("idempotency_key", models.CharField(max_length=50)),
                ("response_status_code", models.PositiveSmallIntegerField(default=None, null=True)),
                ("response_headers", models.JSONField(default=None, null=True)),
                ("response_body", models.BinaryField(default=None, null=True)),
                ("created", models.DateTimeField(default=django.utils.timezone.now)),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="+",
                        to="accounts.user",
                    ),
                ),
            ],
            options={
                "db_table": "idempotency",
                "constraints": [
                    models.UniqueConstraint(fields=("user", "idempotency_key"), name="idempotency_user_key_unique"),
                ],
            },
        ),
    ]
