"""
Dashboard API routes, mounted under /api/.
"""
from django.urls import path

from leads.api import config, events, triage

urlpatterns = [
    # Events
    path('events', events.EventListCreateView.as_view()),
    path('events/stats', events.EventStatsView.as_view()),
    path('events/<int:event_id>', events.EventDetailView.as_view()),
    path('webhooks/call', events.EventListCreateView.as_view()),
    path('clear_all', events.ClearAllView.as_view()),

    # Triage
    path('owner', triage.OwnerView.as_view()),
    path('next_step', triage.NextStepView.as_view()),
    path('result', triage.ResultView.as_view()),

    # Dashboard
    path('config', config.DashboardConfigView.as_view()),
]
