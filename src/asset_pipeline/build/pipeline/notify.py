"""Completion notifications for build tasks."""
import logging

logger = logging.getLogger(__name__)


def notify(task_name: str, outputs: list = None):
    """Announce that a task finished. Printed once per run, after the last file."""
    count = len(outputs) if outputs is not None else None
    suffix = f" ({count} file{'s' if count != 1 else ''})" if count is not None else ""
    logger.info(f"Task '{task_name}' completed{suffix}")
    print(f'✅ TASK: "{task_name}" Completed! 💯{suffix}')
