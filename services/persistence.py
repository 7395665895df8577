"""
Local persistence for the completed-order history.

Only the order history survives a restart. The cart, the selected tenant
and the login session are never written.

Storage Format:
    <data_dir>/<storage_key>.json
    {
        "schema_version": 1,
        "completed_orders": [ {Order.to_dict()}, ... ]
    }

    A missing file, unreadable JSON, a different schema_version or any
    malformed order means "start from an empty history". This is logged,
    never fatal.

Hydration:
    start_hydration() restores on a background thread ("Hydration") and
    then sets the readiness signal. Screens check is_hydrated (or call
    wait_until_hydrated()) before reading the ledger.

Write Policy:
    save() runs after every ledger mutation. The file is replaced
    atomically (temp file + os.replace); last writer wins.
"""

from __future__ import annotations

import json
import os
import tempfile
import threading
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from models.order import Order
from logging_config import get_logger, set_thread_name


logger = get_logger(__name__)

SCHEMA_VERSION = 1


class PersistenceAdapter:
    """
    JSON file store for completed orders with a hydration-readiness signal.

    Attributes:
        path: File holding the persisted payload
        is_hydrated: True once the restore has finished (successfully or not)
    """

    def __init__(self, data_dir: str | Path, storage_key: str):
        self._path = Path(data_dir) / f"{storage_key}.json"
        self._hydrated = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._write_lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    @property
    def is_hydrated(self) -> bool:
        return self._hydrated.is_set()

    def wait_until_hydrated(self, timeout: Optional[float] = None) -> bool:
        """Block until hydration finishes; returns False on timeout."""
        return self._hydrated.wait(timeout)

    # ------------------------------------------------------------------
    # Restore
    # ------------------------------------------------------------------

    def load(self) -> List[Order]:
        """
        Read the persisted history.

        Returns:
            Restored orders in stored order, or [] if nothing usable exists
        """
        if not self._path.exists():
            logger.info(f"No stored order history at {self._path}; starting empty")
            return []

        try:
            with open(self._path, "r", encoding="utf-8") as f:
                payload = json.load(f)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.warning(f"Stored order history unreadable, starting empty: {e}")
            return []

        if not isinstance(payload, dict):
            logger.warning("Stored order history has unexpected shape, starting empty")
            return []

        version = payload.get("schema_version")
        if version != SCHEMA_VERSION:
            logger.warning(
                f"Stored order history has schema_version {version!r}, "
                f"expected {SCHEMA_VERSION}; starting empty"
            )
            return []

        try:
            orders = [Order.from_dict(item) for item in payload.get("completed_orders", [])]
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Stored order history contains a malformed order, starting empty: {e}")
            return []

        logger.info(f"Restored {len(orders)} orders from {self._path}")
        return orders

    def hydrate(self, apply: Callable[[List[Order]], None]) -> None:
        """
        Restore synchronously, hand the orders to `apply`, then signal ready.

        The signal is set even if `apply` fails so screens never wait
        forever; the failure itself is logged and re-raised.
        """
        try:
            apply(self.load())
        finally:
            self._hydrated.set()

    def start_hydration(self, apply: Callable[[List[Order]], None]) -> None:
        """
        Restore on a background thread.

        Safe to call multiple times - only starts once.
        """
        if self._thread is not None or self.is_hydrated:
            logger.warning("Hydration already started")
            return

        def _run() -> None:
            set_thread_name("Hydration")
            try:
                self.hydrate(apply)
            except Exception as e:
                logger.error(f"Applying restored orders failed: {e}", exc_info=True)

        self._thread = threading.Thread(target=_run, name="Hydration", daemon=True)
        self._thread.start()
        logger.info("Order history hydration started")

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    def save(self, orders: Sequence[Order]) -> bool:
        """
        Persist the full history.

        Returns:
            False if the write failed (logged); in-memory state is kept
        """
        payload = {
            "schema_version": SCHEMA_VERSION,
            "completed_orders": [order.to_dict() for order in orders],
        }

        with self._write_lock:
            try:
                self._path.parent.mkdir(parents=True, exist_ok=True)
                fd, tmp_name = tempfile.mkstemp(
                    prefix=f".{self._path.stem}-", suffix=".tmp", dir=self._path.parent
                )
                try:
                    with os.fdopen(fd, "w", encoding="utf-8") as f:
                        json.dump(payload, f, indent=2)
                    os.replace(tmp_name, self._path)
                except BaseException:
                    if os.path.exists(tmp_name):
                        os.unlink(tmp_name)
                    raise
            except OSError as e:
                logger.error(f"Failed to persist order history to {self._path}: {e}")
                return False

        logger.debug(f"Persisted {len(orders)} orders")
        return True
