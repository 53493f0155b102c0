"""
TalentMatch project package.

Loads the Celery app on Django start-up so that ``shared_task`` decorators
bind to it.
"""

from .celery import app as celery_app

__all__ = ('celery_app',)
