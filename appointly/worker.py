"""
Celery worker entry point
Delivers booking notifications and runs appointment maintenance
"""
import logging
from celery.signals import worker_ready, worker_shutdown

from appointly.config.celery_config import celery_app
from appointly.utils.my_logging import setup_logging

# Setup logging first
setup_logging()
logger = logging.getLogger(__name__)


@worker_ready.connect
def worker_ready_handler(sender=None, **kwargs):
    """Handle worker startup"""
    booking_tasks = sorted(name for name in celery_app.tasks.keys() if name.startswith("appointly."))
    logger.info("Celery worker ready")
    logger.info(f"Registered booking tasks: {booking_tasks}")


@worker_shutdown.connect
def worker_shutdown_handler(sender=None, **kwargs):
    """Handle worker shutdown"""
    logger.info("Celery worker shutting down")


if __name__ == "__main__":
    celery_app.start([
        'worker',
        '--loglevel=info',
        '--queues=notifications,maintenance',
        '--concurrency=4',
        '--max-tasks-per-child=1000'
    ])
