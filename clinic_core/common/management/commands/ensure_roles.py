# clinic_core/common/management/commands/ensure_roles.py

from django.contrib.auth.models import Group
from django.core.management.base import BaseCommand

from clinic_core.iam.actors import ALL_ROLES


class Command(BaseCommand):
    help = "Create the ADMIN / DOCTOR / RECEPTION / PATIENT groups if they are missing."

    def handle(self, *args, **options):
        created = [name for name in ALL_ROLES if Group.objects.get_or_create(name=name)[1]]

        if created:
            self.stdout.write(self.style.SUCCESS(f"Created role groups: {', '.join(created)}"))
        else:
            self.stdout.write("Role groups already present.")
