"""Celery tasks for scheduled maintenance runs."""
