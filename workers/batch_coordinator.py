"""Batch compression queue with bounded concurrency, retry and pause/resume."""

import dataclasses
import logging
import threading
import time
import uuid
from collections import deque
from typing import Callable, List, Optional, Sequence, Tuple

from models.compression_profile import CompressionProfile
from models.compression_result import EncodedResult
from models.quality_report import QualityReport
from models.queue_item import QueueItem, BatchProgress, Priority, PRIORITY_ORDER
from engines.pipeline import compress_and_assess
from workers.config import BatchConfig

logger = logging.getLogger(__name__)

PROCESSING_TIME_WINDOW = 20

ProcessorResult = Tuple[Optional[EncodedResult], Optional[QualityReport]]
Processor = Callable[[QueueItem], ProcessorResult]


def compress_item(item: QueueItem, ssim_method: str = 'global') -> ProcessorResult:
    """Default processor: compress the item's bytes and score the result."""
    return compress_and_assess(item.data, item.profile, ssim_method=ssim_method)


class BatchCoordinator:
    """
    Runs a processor over queued images, at most `max_concurrency` at a time.

    One dispatch thread starts items; each item runs on its own worker
    thread. Queue and processing set are guarded by a single condition
    variable. Failed items go back to pending until `retry_limit` retries
    are used up. `stop()` clears the queue; items already running finish
    and their outcome is dropped.
    """

    def __init__(self, config: Optional[BatchConfig] = None, processor: Optional[Processor] = None):
        self._config = config or BatchConfig()
        self._processor = processor
        self._queue: List[QueueItem] = []
        self._processing = set()
        self._cond = threading.Condition()
        # Progress snapshot and delivery share one lock; listeners see them in state order
        self._emit_lock = threading.RLock()
        self._running = False
        self._paused = False
        self._generation = 0
        self._processing_times = deque(maxlen=PROCESSING_TIME_WINDOW)

        self._progress_listeners: List[Callable[[BatchProgress], None]] = []
        self._completed_listeners: List[Callable[[QueueItem], None]] = []
        self._failed_listeners: List[Callable[[QueueItem, str], None]] = []

    # --- subscriptions ---

    def on_progress(self, callback: Callable[[BatchProgress], None]) -> None:
        self._progress_listeners.append(callback)

    def on_item_completed(self, callback: Callable[[QueueItem], None]) -> None:
        self._completed_listeners.append(callback)

    def on_item_failed(self, callback: Callable[[QueueItem, str], None]) -> None:
        self._failed_listeners.append(callback)

    # --- queue management ---

    def add_to_queue(
        self,
        files: Sequence[Tuple[str, bytes]],
        profile: CompressionProfile,
        priority: Priority = 'normal'
    ) -> List[QueueItem]:
        """Queue (name, data) pairs. Starts processing if idle and not paused."""
        if priority not in PRIORITY_ORDER:
            raise ValueError(f"Priority must be high, normal or low, got {priority!r}")

        new_items = [
            QueueItem(id=f"{name}-{uuid.uuid4().hex[:8]}", name=name, data=data,
                      profile=profile, priority=priority)
            for name, data in files
        ]
        if self._config.prioritize_small_files:
            # Stable: ties keep insertion order
            new_items.sort(key=lambda item: (-PRIORITY_ORDER[item.priority], item.original_size))

        with self._cond:
            self._queue.extend(new_items)
            should_start = not self._running and not self._paused
            self._cond.notify_all()

        logger.info("Queued %d item(s) at %s priority", len(new_items), priority)
        self._emit_progress()
        if should_start:
            self.start()
        return new_items

    def clear_completed(self) -> None:
        """Drop completed and failed items."""
        with self._cond:
            self._queue = [i for i in self._queue if i.status not in ('completed', 'failed')]
        self._emit_progress()

    def retry_failed(self) -> None:
        """Reset every failed item to pending with a fresh retry budget."""
        with self._cond:
            count = 0
            for item in self._queue:
                if item.status == 'failed':
                    item.status = 'pending'
                    item.retry_count = 0
                    item.error = None
                    count += 1
            should_start = not self._running and not self._paused
            self._cond.notify_all()

        logger.info("Retrying %d failed item(s)", count)
        if should_start:
            self.start()
        self._emit_progress()

    def get_queue_items(self) -> List[QueueItem]:
        with self._cond:
            return list(self._queue)

    def update_config(self, **changes) -> BatchConfig:
        with self._cond:
            self._config = dataclasses.replace(self._config, **changes)
            self._cond.notify_all()
            return self._config

    @property
    def config(self) -> BatchConfig:
        return self._config

    # --- run control ---

    def start(self) -> None:
        with self._cond:
            if self._running:
                return
            self._running = True
            self._paused = False
            generation = self._generation

        thread = threading.Thread(
            target=self._dispatch_loop, args=(generation,), name="batch-dispatch", daemon=True
        )
        thread.start()

    def pause(self) -> None:
        """Stop dispatching new items; running items finish."""
        with self._cond:
            self._pause_locked()
        self._emit_progress()

    def resume(self) -> None:
        with self._cond:
            self._paused = False
            should_start = not self._running
            self._cond.notify_all()
        logger.info("Batch resumed")
        if should_start:
            self.start()
        self._emit_progress()

    def stop(self) -> None:
        """Cancel everything and clear the queue."""
        with self._cond:
            self._generation += 1
            self._running = False
            self._paused = False
            self._processing.clear()
            self._queue = []
            self._processing_times.clear()
            self._cond.notify_all()
        logger.info("Batch stopped")
        self._emit_progress()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until nothing is processing and nothing is dispatchable."""
        with self._cond:
            return self._cond.wait_for(self._is_idle, timeout=timeout)

    def _is_idle(self) -> bool:
        if self._processing:
            return False
        if self._paused:
            return True
        return not any(item.status == 'pending' for item in self._queue)

    def _pause_locked(self) -> None:
        self._paused = True
        self._cond.notify_all()
        logger.info("Batch paused")

    # --- dispatch ---

    def _dispatch_loop(self, generation: int) -> None:
        while True:
            with self._cond:
                if generation != self._generation:
                    return
                pending = [
                    item for item in self._queue
                    if item.status == 'pending' and item.id not in self._processing
                ]
                if not self._running or self._paused or (not pending and not self._processing):
                    self._running = False
                    self._cond.notify_all()
                    return

                slots = self._config.max_concurrency - len(self._processing)
                batch = pending[:max(slots, 0)]
                if not batch:
                    # Slot frees within one poll interval at the latest
                    self._cond.wait(timeout=self._config.poll_interval)
                    continue

                for item in batch:
                    self._processing.add(item.id)
                    item.status = 'processing'
                    item.start_time = time.time()
                    item.end_time = None

            for item in batch:
                logger.debug("Starting %s", item.id)
                worker = threading.Thread(
                    target=self._process_item, args=(item, generation),
                    name=f"batch-{item.id}", daemon=True
                )
                worker.start()
            self._emit_progress()

    def _run_processor(self, item: QueueItem) -> ProcessorResult:
        if self._processor is not None:
            return self._processor(item)
        return compress_item(item, ssim_method=self._config.ssim_method)

    def _process_item(self, item: QueueItem, generation: int) -> None:
        error_message = None
        result = report = None
        try:
            result, report = self._run_processor(item)
        except Exception as e:
            error_message = str(e) or type(e).__name__
            logger.debug("Processor raised for %s", item.id, exc_info=True)

        completed = failed = False
        with self._cond:
            if generation != self._generation:
                logger.debug("Discarding outcome of %s from a stopped batch", item.id)
                return
            self._processing.discard(item.id)
            item.end_time = time.time()

            if error_message is None:
                item.status = 'completed'
                item.result = result
                item.report = report
                item.error = None
                self._processing_times.append(item.end_time - item.start_time)
                completed = True
                logger.info("Completed %s in %.2fs", item.id, item.end_time - item.start_time)
            else:
                item.error = error_message
                if item.retry_count < self._config.retry_limit:
                    item.retry_count += 1
                    item.status = 'pending'
                    logger.warning(
                        "Item %s failed (%s), retry %d/%d",
                        item.id, error_message, item.retry_count, self._config.retry_limit
                    )
                else:
                    item.status = 'failed'
                    failed = True
                    logger.error("Item %s failed permanently: %s", item.id, error_message)
                    if self._config.pause_on_error:
                        self._pause_locked()
            self._cond.notify_all()

        if completed:
            self._emit(self._completed_listeners, item)
        if failed:
            self._emit(self._failed_listeners, item, error_message)
        self._emit_progress()

    # --- progress ---

    def get_progress(self) -> BatchProgress:
        with self._cond:
            total = len(self._queue)
            completed_items = [i for i in self._queue if i.status == 'completed']
            completed = len(completed_items)
            failed = sum(1 for i in self._queue if i.status == 'failed')
            processing = sum(1 for i in self._queue if i.status == 'processing')
            pending = sum(1 for i in self._queue if i.status == 'pending')
            paused = pending + processing if self._paused else 0

            average_time = (
                sum(self._processing_times) / len(self._processing_times)
                if self._processing_times else 0.0
            )
            remaining = pending + processing
            eta = (
                remaining * average_time / self._config.max_concurrency
                if remaining > 0 and average_time > 0 else 0.0
            )

            total_savings = sum(i.result.savings for i in completed_items if i.result is not None)
            total_original = sum(i.original_size for i in completed_items if i.result is not None)
            savings_pct = int(round(total_savings / total_original * 100)) if total_original > 0 else 0

            return BatchProgress(
                total=total,
                completed=completed,
                failed=failed,
                processing=processing,
                pending=0 if self._paused else pending,
                paused=paused,
                estimated_time_remaining=eta,
                average_processing_time=average_time,
                total_savings=total_savings,
                total_savings_percentage=savings_pct,
            )

    def get_status(self) -> dict:
        with self._cond:
            return {
                'is_running': self._running,
                'is_paused': self._paused,
                'queue_length': len(self._queue),
            }

    def _emit_progress(self) -> None:
        if not self._progress_listeners:
            return
        with self._emit_lock:
            self._emit(self._progress_listeners, self.get_progress())

    def _emit(self, listeners, *args) -> None:
        for callback in list(listeners):
            try:
                callback(*args)
            except Exception:
                logger.exception("Batch listener %r raised", callback)
