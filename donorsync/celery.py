import os

from celery import Celery
from dotenv import load_dotenv


load_dotenv(override=False)


os.environ.setdefault("DJANGO_SETTINGS_MODULE", "donorsync.settings")

app = Celery("donorsync")

# Load any CELERY_* settings from Django settings.py
app.config_from_object("django.conf:settings", namespace="CELERY")

# Picks up blood.tasks (matching pass, expiry sweep, SMS alerts)
app.autodiscover_tasks()
