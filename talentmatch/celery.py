"""
Celery configuration for the TalentMatch project.

This module configures Celery for background matching work with:
- Auto-discovery of tasks from all registered Django apps
- A dedicated queue for matching runs so LLM-bound batches do not starve
  other work
- JSON serialization and conservative acknowledgement settings
"""

import os

from celery import Celery
from kombu import Exchange, Queue

# Set the default Django settings module for the 'celery' program.
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'talentmatch.settings')

app = Celery('talentmatch')

# All celery-related configuration keys use a `CELERY_` prefix in settings.
app.config_from_object('django.conf:settings', namespace='CELERY')

# Load task modules from all registered Django apps.
app.autodiscover_tasks()


# ==================== QUEUE CONFIGURATION ====================

default_exchange = Exchange('default', type='direct')
matching_exchange = Exchange('matching', type='direct')

app.conf.task_queues = (
    Queue('default', default_exchange, routing_key='default'),
    Queue('matching', matching_exchange, routing_key='matching'),
)

app.conf.task_default_queue = 'default'
app.conf.task_default_exchange = 'default'
app.conf.task_default_routing_key = 'default'


# ==================== TASK ROUTING ====================

app.conf.task_routes = {
    'matching.*': {'queue': 'matching', 'routing_key': 'matching'},
}


# ==================== SERIALIZATION ====================

app.conf.task_serializer = 'json'
app.conf.result_serializer = 'json'
app.conf.accept_content = ['json']
app.conf.enable_utc = True


# ==================== RESULT BACKEND ====================

# Results will be stored for 24 hours
app.conf.result_expires = 86400


# ==================== TASK EXECUTION ====================

# Bulk runs are long and LLM-bound; one task per worker slot at a time.
app.conf.worker_prefetch_multiplier = 1

# Acknowledge after completion
app.conf.task_acks_late = True
app.conf.task_reject_on_worker_lost = True

# Hard and soft time limits for a single bulk run
app.conf.task_time_limit = 6 * 3600
app.conf.task_soft_time_limit = 6 * 3600 - 300
