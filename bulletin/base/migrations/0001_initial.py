import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="FailedTask",
            fields=[
                ("id", models.AutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("when", models.DateTimeField(default=django.utils.timezone.now, editable=False)),
                ("task_id", models.CharField(max_length=255)),
                ("name", models.CharField(max_length=255)),
                ("args", models.JSONField(default=list)),
                ("kwargs", models.JSONField(default=dict)),
                ("exc", models.TextField(default=None, help_text="repr(exception)", null=True)),
                ("einfo", models.TextField(default=None, help_text="repr(einfo)", null=True)),
            ],
            options={
                "db_table": "failed_tasks",
                "ordering": ["-when"],
            },
        ),
    ]
