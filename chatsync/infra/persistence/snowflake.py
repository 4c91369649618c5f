# =============================================================================
# File: chatsync/infra/persistence/snowflake.py
# Description: Snowflake ID generator for time-ordered message identifiers
# =============================================================================
# 64-bit IDs:
#   - 42 bits for timestamp (milliseconds since custom epoch)
#   - 10 bits for worker ID (1024 workers max)
#   - 12 bits for sequence (4096 IDs per millisecond per worker)
#
# Message ids are rendered as 19-digit zero-padded strings so that string
# order equals numeric order (and therefore creation order).
# =============================================================================

from __future__ import annotations

import os
import socket
import threading
import time

from typing import Optional

from chatsync.config.logging_config import get_logger

log = get_logger("chatsync.infra.snowflake")

# Custom epoch: January 1, 2024 00:00:00 UTC
CHATSYNC_EPOCH = 1704067200000

TIMESTAMP_BITS = 42
WORKER_ID_BITS = 10
SEQUENCE_BITS = 12

MAX_WORKER_ID = (1 << WORKER_ID_BITS) - 1  # 1023
MAX_SEQUENCE = (1 << SEQUENCE_BITS) - 1    # 4095

TIMESTAMP_SHIFT = WORKER_ID_BITS + SEQUENCE_BITS  # 22
WORKER_ID_SHIFT = SEQUENCE_BITS                    # 12

ID_STRING_WIDTH = 19


class SnowflakeIDGenerator:
    """
    Thread-safe Snowflake ID generator.

    Usage:
        generator = SnowflakeIDGenerator(worker_id=1)
        message_id = generator.generate_str()
    """

    def __init__(self, worker_id: Optional[int] = None, epoch: int = CHATSYNC_EPOCH):
        """
        Initialize Snowflake ID generator.

        Args:
            worker_id: Worker ID (0-1023). If None, derived from env or hostname.
            epoch: Custom epoch in milliseconds.
        """
        if worker_id is None:
            worker_id = self._derive_worker_id()

        if worker_id < 0 or worker_id > MAX_WORKER_ID:
            raise ValueError(f"worker_id must be between 0 and {MAX_WORKER_ID}")

        self._worker_id = worker_id
        self._epoch = epoch
        self._sequence = 0
        self._last_timestamp = -1
        self._lock = threading.Lock()

        log.debug(f"SnowflakeIDGenerator initialized: worker_id={worker_id}, epoch={epoch}")

    @staticmethod
    def _derive_worker_id() -> int:
        """Derive worker ID from environment or hostname."""
        env_worker_id = os.environ.get('SNOWFLAKE_WORKER_ID')
        if env_worker_id is not None:
            try:
                return int(env_worker_id) % (MAX_WORKER_ID + 1)
            except ValueError:
                log.warning(f"Ignoring non-numeric SNOWFLAKE_WORKER_ID={env_worker_id!r}")

        # Pod ordinal, e.g. "chatsync-api-3" -> 3
        pod_name = os.environ.get('POD_NAME', os.environ.get('HOSTNAME', ''))
        for part in reversed(pod_name.split('-')):
            if part.isdigit():
                return int(part) % (MAX_WORKER_ID + 1)

        return sum(socket.gethostname().encode()) % (MAX_WORKER_ID + 1)

    def _current_timestamp(self) -> int:
        return int(time.time() * 1000) - self._epoch

    def _wait_next_millis(self, last_timestamp: int) -> int:
        timestamp = self._current_timestamp()
        while timestamp <= last_timestamp:
            time.sleep(0.0001)
            timestamp = self._current_timestamp()
        return timestamp

    def generate(self) -> int:
        """
        Generate a new Snowflake ID.

        Raises:
            RuntimeError: If the clock moved backwards by more than 5ms
        """
        with self._lock:
            timestamp = self._current_timestamp()

            if timestamp < self._last_timestamp:
                drift = self._last_timestamp - timestamp
                if drift > 5:
                    raise RuntimeError(f"Clock moved backwards by {drift}ms. Refusing to generate ID.")
                timestamp = self._wait_next_millis(self._last_timestamp - 1)

            if timestamp == self._last_timestamp:
                self._sequence = (self._sequence + 1) & MAX_SEQUENCE
                if self._sequence == 0:
                    timestamp = self._wait_next_millis(timestamp)
            else:
                self._sequence = 0

            self._last_timestamp = timestamp

            return (
                (timestamp << TIMESTAMP_SHIFT) |
                (self._worker_id << WORKER_ID_SHIFT) |
                self._sequence
            )

    def generate_str(self) -> str:
        """Generate a new Snowflake ID as a sortable fixed-width string."""
        return str(self.generate()).zfill(ID_STRING_WIDTH)

    @property
    def worker_id(self) -> int:
        return self._worker_id
