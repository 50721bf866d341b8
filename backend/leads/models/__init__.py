from leads.models.event import Event
from leads.models.activity import LeadActivity

__all__ = ["Event", "LeadActivity"]
