"""
Run the SLA escalation sweep once, without the django-q cluster.

Usage:
    python manage.py escalate_overdue
"""
from django.core.management.base import BaseCommand

from leads.services.sla import escalate_overdue_leads


class Command(BaseCommand):
    help = "Escalate unhandled leads that are past the SLA"

    def handle(self, *args, **options):
        self.stdout.write(self.style.SUCCESS(escalate_overdue_leads()))
