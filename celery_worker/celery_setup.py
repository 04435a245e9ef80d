# celery_worker/celery_setup.py
from celery import Celery
from celery.schedules import crontab
from kombu import Queue, Exchange
# The worker must be started from the project root so that 'solar_gallery' is importable.
from solar_gallery.core.config import settings
from solar_gallery.core.logging_config import setup_logging

setup_logging()

# Create Celery application instance
celery_app = Celery(
    "solar_gallery_tasks",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
    include=[
        'celery_worker.tasks.gallery_tasks',
    ]
)

celery_app.conf.update(
    task_serializer='json',
    accept_content=['json'],
    result_serializer='json',
    timezone=settings.APP_TIMEZONE,
    enable_utc=True,
    task_acks_late=True, # Catalog sync and batch conversion can run for minutes
    broker_heartbeat=30,
    broker_heartbeat_checkrate=10,
    worker_hijack_root_logger=False, # Keep the format configured by setup_logging
)

default_exchange = Exchange('tasks', type='direct')

celery_app.conf.task_queues = (
    Queue('default', default_exchange, routing_key='default'),
    Queue('beat_scheduler_tasks_queue', default_exchange, routing_key='beat.scheduler'),
    Queue('maintenance_queue', default_exchange, routing_key='gallery.maintenance'),
    Queue('conversion_queue', default_exchange, routing_key='gallery.conversion'),
)
celery_app.conf.task_default_queue = 'default'
celery_app.conf.task_default_exchange = 'tasks'
celery_app.conf.task_default_routing_key = 'default'

# Routing is done with `apply_async(..., queue='...')` and beat `options`
celery_app.conf.task_routes = None

celery_app.conf.beat_schedule = {
    'sync-gallery-catalog-regularly': {
        'task': 'tasks.gallery.sync_catalog',
        'schedule': crontab(minute=f'*/{settings.BEAT_SCHEDULE_GALLERY_SYNC_MINUTES}')
        if settings.BEAT_SCHEDULE_GALLERY_SYNC_MINUTES < 60 else crontab(minute=0),
        'options': {'queue': 'maintenance_queue'}
    },
    'audit-gallery-accessibility-daily': {
        'task': 'tasks.gallery.audit_accessibility',
        'schedule': crontab(minute=30, hour=f'*/{settings.BEAT_SCHEDULE_ACCESSIBILITY_AUDIT_HOURS}')
        if settings.BEAT_SCHEDULE_ACCESSIBILITY_AUDIT_HOURS < 24 else crontab(minute=30, hour=3),
        'options': {'queue': 'maintenance_queue'}
    },
}

if __name__ == '__main__':
    # Usual entry points:
    #   celery -A celery_worker.celery_setup.celery_app worker -l info -Q default,maintenance_queue,conversion_queue
    #   celery -A celery_worker.celery_setup.celery_app beat -l info
    celery_app.start()
