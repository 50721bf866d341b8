"""
Management command to register the periodic SLA escalation sweep with django-q.

Usage:
    python manage.py setup_sla_sweep [--minutes N]

Creates (or updates) a Schedule entry that runs escalate_overdue_leads().
Re-running it only updates the existing entry.
"""
from django.core.management.base import BaseCommand
from django_q.models import Schedule

SCHEDULE_NAME = "lead_sla_escalation_sweep"


class Command(BaseCommand):
    help = "Register the periodic lead SLA escalation sweep with django-q"

    def add_arguments(self, parser):
        parser.add_argument("--minutes", type=int, default=1, help="Sweep interval in minutes")

    def handle(self, *args, **options):
        minutes = max(1, options["minutes"])
        schedule, created = Schedule.objects.update_or_create(
            name=SCHEDULE_NAME,
            defaults={
                "func": "leads.services.sla.escalate_overdue_leads",
                "schedule_type": Schedule.MINUTES,
                "minutes": minutes,
                "repeats": -1,  # run forever
            },
        )
        verb = "Created" if created else "Updated"
        self.stdout.write(self.style.SUCCESS(
            f"{verb} periodic task: {schedule.name} (every {minutes} minute(s))"
        ))
