"""
Order Ledger with Concurrency Control

Appends every created order to an Excel workbook. Several Celery workers
may export at once, so each write happens under a file lock.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Any

import pandas as pd
from filelock import FileLock, Timeout

from qr_ordering.core.config import get_settings

logger = logging.getLogger(__name__)

LEDGER_FILENAME = "orders.xlsx"


def ledger_paths() -> tuple[Path, Path]:
    """Workbook and lock file under the configured data directory."""
    data_dir = Path(get_settings().data_directory)
    return data_dir / LEDGER_FILENAME, data_dir / f"{LEDGER_FILENAME}.lock"


def flatten_order(order: dict[str, Any]) -> dict[str, Any]:
    """
    Turn a composed order (JSON mode) into the ledger's flat record.

    Lines are collapsed into one text cell like ``"2x Coffee, 1x Samosa"``.
    """
    lines = order.get("items") or []
    return {
        "order_id": order.get("id"),
        "table_number": order.get("table_number"),
        "created_at": order.get("created_at"),
        "items": ", ".join(f"{line['quantity']}x {line['item_name']}" for line in lines),
        "item_count": sum(int(line["quantity"]) for line in lines),
        "total_amount_inr": order.get("total_amount_inr"),
        "total_amount_usd": order.get("total_amount_usd"),
        "currency": order.get("currency"),
        "payment_method": order.get("payment_method"),
        "payment_status": order.get("payment_status"),
        "order_status": order.get("order_status"),
    }


class ExcelManager:
    """Thread-safe Excel order ledger."""

    ORDER_COLUMNS = [
        "order_id",
        "table_number",
        "date_time",
        "items",
        "item_count",
        "total_amount_inr",
        "total_amount_usd",
        "currency",
        "payment_method",
        "payment_status",
        "order_status",
        "exported_at",
    ]

    @classmethod
    def _ensure_data_dir(cls, path: Path) -> None:
        if not path.parent.exists():
            path.parent.mkdir(parents=True, exist_ok=True)
            logger.info(f"Created data directory: {path.parent}")

    @classmethod
    def _load_or_create_df(cls, file_path: Path) -> pd.DataFrame:
        """Load existing ledger or start an empty one."""
        if file_path.exists():
            try:
                return pd.read_excel(file_path, engine="openpyxl")
            except (ValueError, OSError) as e:
                logger.warning(f"Error reading {file_path}: {e}")
        return pd.DataFrame(columns=cls.ORDER_COLUMNS)

    @classmethod
    def export_order(cls, order_data: dict[str, Any]) -> dict[str, Any]:
        """Append one flattened order record to the ledger."""
        ledger_file, lock_file = ledger_paths()
        cls._ensure_data_dir(ledger_file)
        timeout = get_settings().excel_lock_timeout

        order_id = order_data.get("order_id", 0)
        result = {
            "success": False,
            "message": "",
            "order_id": order_id,
            "exported_at": None,
        }

        try:
            with FileLock(str(lock_file), timeout=timeout):
                logger.debug(f"Lock acquired for Order #{order_id}")

                df = cls._load_or_create_df(ledger_file)

                export_time = datetime.now().isoformat()
                new_row = {
                    "order_id": order_id,
                    "table_number": order_data.get("table_number"),
                    "date_time": order_data.get("created_at", export_time),
                    "items": order_data.get("items"),
                    "item_count": order_data.get("item_count", 0),
                    "total_amount_inr": order_data.get("total_amount_inr"),
                    "total_amount_usd": order_data.get("total_amount_usd"),
                    "currency": order_data.get("currency", "INR"),
                    "payment_method": order_data.get("payment_method"),
                    "payment_status": order_data.get("payment_status"),
                    "order_status": order_data.get("order_status"),
                    "exported_at": export_time,
                }

                if df.empty:
                    df = pd.DataFrame([new_row], columns=cls.ORDER_COLUMNS)
                else:
                    df = pd.concat([df, pd.DataFrame([new_row])], ignore_index=True)
                df.to_excel(str(ledger_file), index=False, engine="openpyxl")

                logger.info(f"Order #{order_id} exported to Excel")

                result["success"] = True
                result["message"] = f"Order #{order_id} exported"
                result["exported_at"] = export_time

            logger.debug(f"Lock released for Order #{order_id}")

        except Timeout:
            result["message"] = f"Lock timeout ({timeout}s)"
            logger.error(f"Lock timeout for Order #{order_id}")

        return result

    @classmethod
    def get_all_orders(cls) -> list[dict[str, Any]]:
        """Every ledger row, oldest first."""
        ledger_file, _ = ledger_paths()
        if not ledger_file.exists():
            return []
        return pd.read_excel(ledger_file, engine="openpyxl").to_dict("records")

    @classmethod
    def clear_all(cls) -> bool:
        """Delete the ledger and its lock file."""
        for f in ledger_paths():
            if f.exists():
                f.unlink()
        logger.info("Order ledger cleared")
        return True
