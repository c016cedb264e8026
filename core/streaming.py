"""
Streaming Helpers - bounded transfers and transfer accounting

@.architecture
Incoming: api/endpoints/files.py, api/endpoints/generate.py, data/storage/local.py --- {operation name, byte counts, total size}
Processing: generate_random_chunks(), TransferTracker.__enter__/__exit__(), format_bytes(), content_disposition() --- {4 jobs: chunk_generation, metrics_recording, rate_logging, header_formatting}
Outgoing: monitoring/metrics.py, api/endpoints/*.py --- {AsyncIterator[bytes], transfer metrics, completion log lines}

Every transfer moves data through a fixed-size chunk so peak memory does not
depend on the size of the payload.
"""

import asyncio
import random
import time
from typing import AsyncIterator, Optional
from urllib.parse import quote

from monitoring import get_logger, counter, gauge, histogram

logger = get_logger(__name__)

CHUNK_SIZE = 64 * 1024
BYTES_PER_MB = 1024 * 1024
PROGRESS_LOG_INTERVAL = 100 * BYTES_PER_MB

# Metrics
transfers_total = counter(
    'streaming_transfers_total',
    'Total streaming transfers',
    ['operation', 'status']
)
bytes_total = counter(
    'streaming_bytes_total',
    'Total bytes moved by streaming transfers',
    ['operation']
)
transfer_duration = histogram(
    'streaming_transfer_duration_seconds',
    'Streaming transfer duration in seconds',
    ['operation']
)
active_transfers = gauge(
    'streaming_active_transfers',
    'Transfers currently in flight',
    ['operation']
)


def format_bytes(num_bytes: int) -> str:
    """Human readable size: B below 1 KiB, otherwise KB/MB/GB with two decimals."""
    if num_bytes < 1024:
        return f"{num_bytes} B"
    elif num_bytes < 1024 * 1024:
        return f"{num_bytes / 1024:.2f} KB"
    elif num_bytes < 1024 * 1024 * 1024:
        return f"{num_bytes / (1024 * 1024):.2f} MB"
    return f"{num_bytes / (1024 * 1024 * 1024):.2f} GB"


def content_disposition(filename: str) -> str:
    """Build an ``attachment`` Content-Disposition header value for ``filename``."""
    try:
        filename.encode("latin-1")
    except UnicodeEncodeError:
        return f"attachment; filename*=utf-8''{quote(filename)}"
    escaped = filename.replace("\\", "\\\\").replace('"', '\\"')
    return f'attachment; filename="{escaped}"'


class TransferTracker:
    """
    Times one transfer and records its outcome.

    Use as a context manager around the transfer; set ``bytes_transferred``
    as data moves. Leaving the block normally logs the completion line with
    throughput, leaving it with an exception (including cancellation on
    client disconnect) records a failed transfer.
    """

    def __init__(self, operation: str, subject: str = ""):
        self.operation = operation
        self.subject = subject
        self.bytes_transferred = 0
        self._started = 0.0
        self.elapsed = 0.0

    @property
    def tag(self) -> str:
        return f"[{self.operation.upper()}]"

    def __enter__(self) -> "TransferTracker":
        self._started = time.perf_counter()
        active_transfers.inc(operation=self.operation)
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.elapsed = time.perf_counter() - self._started
        active_transfers.dec(operation=self.operation)
        bytes_total.inc(self.bytes_transferred, operation=self.operation)
        transfer_duration.observe(self.elapsed, operation=self.operation)

        if exc_type is None:
            transfers_total.inc(operation=self.operation, status='success')
            logger.info(
                f"{self.tag} Completed {self._describe()}{format_bytes(self.bytes_transferred)} "
                f"in {self.elapsed_ms}ms ({self.mb_per_second:.2f} MB/s)"
            )
        else:
            transfers_total.inc(operation=self.operation, status='error')
            logger.warning(
                f"{self.tag} Aborted {self._describe()}after "
                f"{format_bytes(self.bytes_transferred)}: {exc_type.__name__}"
            )
        return False

    def _describe(self) -> str:
        return f"{self.subject}: " if self.subject else ""

    @property
    def elapsed_ms(self) -> int:
        return int(self.elapsed * 1000)

    @property
    def mb_per_second(self) -> float:
        return self.bytes_transferred / BYTES_PER_MB / max(self.elapsed, 0.001)


async def generate_random_chunks(
    total_bytes: int,
    chunk_size: int = CHUNK_SIZE,
    rng: Optional[random.Random] = None
) -> AsyncIterator[bytes]:
    """
    Yield exactly ``total_bytes`` pseudo-random bytes in ``chunk_size`` pieces.

    Only one chunk is alive at a time. The loop yields to the event loop
    between chunks so a single large generation does not starve other
    connections.
    """
    rng = rng or random.Random()
    remaining = total_bytes
    while remaining > 0:
        size = min(chunk_size, remaining)
        yield rng.randbytes(size)
        remaining -= size
        await asyncio.sleep(0)
