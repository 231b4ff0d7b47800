from django.db import migrations

ROLES = [(0, 'admin'), (1, 'vendor'), (2, 'customer')]


def seed_roles(apps, schema_editor):
    Role = apps.get_model('users', 'Role')
    for level, name in ROLES:
        Role.objects.get_or_create(level=level, defaults={'name': name})


def unseed_roles(apps, schema_editor):
    Role = apps.get_model('users', 'Role')
    Role.objects.filter(level__in=[level for level, _ in ROLES], users__isnull=True).delete()


class Migration(migrations.Migration):

    dependencies = [
        ('users', '0001_initial'),
    ]

    operations = [
        migrations.RunPython(seed_roles, unseed_roles),
    ]
