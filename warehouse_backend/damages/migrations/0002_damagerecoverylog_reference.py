from django.db import migrations, models


def backfill_reference(apps, schema_editor):
    DamageRecoveryLog = apps.get_model("damages", "DamageRecoveryLog")
    for log in DamageRecoveryLog.objects.filter(reference="").iterator():
        if log.action_type == "recover":
            log.reference = f"recover#{log.pk}"
        elif log.dispatch_id:
            log.reference = f"dispatch_damage#{log.pk}"
        else:
            log.reference = f"damage#{log.pk}"
        log.save(update_fields=["reference"])


class Migration(migrations.Migration):

    dependencies = [
        ("damages", "0001_initial"),
    ]

    operations = [
        migrations.AddField(
            model_name="damagerecoverylog",
            name="reference",
            field=models.CharField(blank=True, db_index=True, max_length=100),
        ),
        migrations.RunPython(backfill_reference, migrations.RunPython.noop),
    ]
