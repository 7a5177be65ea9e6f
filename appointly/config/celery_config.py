"""Celery application configuration"""
from celery import Celery

from appointly.config.settings import get_settings

settings = get_settings()


def create_celery_app() -> Celery:
    """Create and configure the Celery application"""
    app = Celery(
        "appointly",
        broker=settings.CELERY_BROKER_URL,
        backend=settings.CELERY_RESULT_BACKEND,
        include=[
            "appointly.tasks.notification_tasks",
            "appointly.tasks.appointment_tasks",
        ],
    )

    app.conf.update(
        task_serializer=settings.CELERY_TASK_SERIALIZER,
        result_serializer="json",
        accept_content=["json"],
        timezone=settings.DEFAULT_TIMEZONE,
        enable_utc=True,
        task_acks_late=True,
        task_reject_on_worker_lost=True,
        worker_prefetch_multiplier=1,
        task_always_eager=settings.CELERY_TASK_ALWAYS_EAGER,
        task_routes={
            "appointly.tasks.notification_tasks.*": {"queue": "notifications"},
            "appointly.tasks.appointment_tasks.*": {"queue": "maintenance"},
        },
    )

    return app


celery_app = create_celery_app()
