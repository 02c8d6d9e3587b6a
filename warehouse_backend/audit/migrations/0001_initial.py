import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="AuditLog",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("action", models.CharField(choices=[("CREATE", "Create"), ("UPDATE", "Update"), ("DELETE", "Delete"), ("LOGIN", "Login"), ("LOGOUT", "Logout"), ("ASSIGN_PERMISSION", "Assign Permission"), ("REMOVE_PERMISSION", "Remove Permission"), ("UPDATE_PERMISSIONS", "Replace Permissions"), ("UPDATE_ROLE", "Change Role")], db_index=True, max_length=32)),
                ("resource", models.CharField(db_index=True, max_length=64)),
                ("resource_id", models.CharField(blank=True, db_index=True, max_length=64)),
                ("details", models.JSONField(blank=True, default=dict)),
                ("ip_address", models.GenericIPAddressField(blank=True, null=True)),
                ("user_agent", models.CharField(blank=True, max_length=512)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("user", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="audit_logs", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "ordering": ["-created_at", "-id"],
                "indexes": [
                    models.Index(fields=["resource", "resource_id"], name="audit_resource_idx"),
                    models.Index(fields=["user", "created_at"], name="audit_user_created_idx"),
                ],
            },
        ),
    ]
