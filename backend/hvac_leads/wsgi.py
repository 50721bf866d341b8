"""WSGI config for the HVAC lead desk."""
import os
from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'hvac_leads.settings')
application = get_wsgi_application()
