"""
Celery Tasks
Background tasks for the order ledger.
"""

import logging
import time

from qr_ordering.celery_worker import celery_app
from qr_ordering.services.excel_manager import ExcelManager

logger = logging.getLogger(__name__)


@celery_app.task(
    bind=True,
    max_retries=3,
    default_retry_delay=5,
    autoretry_for=(OSError,),
    retry_backoff=True,
)
def export_order_to_excel(self, order_data: dict) -> dict:
    """
    Append an order to the Excel ledger.

    Args:
        order_data: flattened order record (see ``flatten_order``)

    Returns:
        dict: result of the export, with task id and timing added
    """
    task_id = self.request.id
    order_id = order_data.get("order_id", "unknown")

    logger.info(f"Task {task_id}: Processing order #{order_id}")
    start_time = time.time()

    result = ExcelManager.export_order(order_data)

    elapsed = round(time.time() - start_time, 3)
    result["task_id"] = task_id
    result["processing_time_seconds"] = elapsed

    if result["success"]:
        logger.info(f"Task {task_id}: Order #{order_id} completed in {elapsed}s")
    else:
        logger.warning(f"Task {task_id}: Order #{order_id} failed - {result['message']}")

    return result
