# -*- coding: utf-8 -*-
import os
import logging
import threading
import time
import concurrent.futures
from dataclasses import dataclass, field
from functools import partial
from typing import List, Optional, Tuple

from tqdm import tqdm

from faceresize.config import ResizeConfig
from faceresize.errors import BatchSetupError
from faceresize.face import get_face_locator
from faceresize.pipeline import (
    STATUS_FAILED,
    STATUS_SKIPPED,
    STATUS_SUCCESS,
    BatchOutcome,
    ImageTask,
    LocatorFactory,
    run_task,
)

logger = logging.getLogger(__name__)

PROGRESS_BAR_FORMAT = '[{bar:40}] {n_fmt}/{total_fmt} ({remaining}) {postfix}'


@dataclass
class BatchSummary:
    total: int = 0
    succeeded: int = 0
    skipped: int = 0
    failed: int = 0
    unreadable_entries: List[str] = field(default_factory=list)
    elapsed: float = 0.0
    outcomes: List[BatchOutcome] = field(default_factory=list)


class ProgressTracker:
    """Counts finished tasks from any worker thread and mirrors the count on a tqdm bar."""

    def __init__(self, total: int, enabled: bool = True):
        self.total = total
        self._count = 0
        self._lock = threading.Lock()
        self._bar = tqdm(total=total, desc="", unit="file", bar_format=PROGRESS_BAR_FORMAT,
                         ascii=" >#", disable=not enabled, leave=True)

    @property
    def count(self) -> int:
        with self._lock:
            return self._count

    def advance(self) -> None:
        with self._lock:
            self._count += 1
            self._bar.update(1)

    def close(self, message: str = "") -> None:
        with self._lock:
            if message:
                self._bar.set_postfix_str(message)
            self._bar.close()


def validate_input_directory(input_path: str) -> str:
    abs_input_path = os.path.abspath(input_path)
    if not os.path.exists(abs_input_path):
        raise BatchSetupError(f"The provided path does not exist: {abs_input_path}")
    if not os.path.isdir(abs_input_path):
        raise BatchSetupError(f"Provided path is not a directory: {abs_input_path}")
    return abs_input_path


def scan_directory(input_dir: str) -> Tuple[List[str], List[str]]:
    """
    Lists the immediate entries of input_dir (no recursion).
    Returns (entry paths, descriptions of entries that could not be read).
    Raises BatchSetupError when the directory itself cannot be listed.
    """
    entry_paths = []
    unreadable = []
    try:
        with os.scandir(input_dir) as it:
            for entry in it:
                try:
                    entry.is_dir()
                except OSError as e:
                    logger.error(f"  -> Error: Failed to read directory entry '{entry.name}': {e}")
                    unreadable.append(f"{entry.name} ({e})")
                    continue
                entry_paths.append(entry.path)
    except OSError as e:
        raise BatchSetupError(f"Failed to read directory: {input_dir}: {e}")
    entry_paths.sort()
    return entry_paths, unreadable


def build_tasks(paths: List[str], config: ResizeConfig) -> List[ImageTask]:
    return [
        ImageTask(
            source_path=path,
            width=config.target_width,
            height=config.target_height,
            format_token=config.output_format,
            output_dir=config.output_path,
        )
        for path in paths
    ]


def resolve_worker_count(requested: Optional[int], task_count: int) -> int:
    if requested:
        workers = requested
    else:
        workers = os.cpu_count()
        if not workers:
            logger.warning("  -> Warning: Could not determine number of CPU cores. Defaulting to 1 worker.")
            workers = 1
    return max(1, min(workers, task_count))


def _run_and_advance(task: ImageTask, locator_factory: LocatorFactory, jpeg_quality: int,
                     progress: ProgressTracker) -> BatchOutcome:
    try:
        return run_task(task, locator_factory, jpeg_quality)
    finally:
        progress.advance()


def log_settings(config: ResizeConfig) -> None:
    logger.info("=" * 60)
    logger.info(f"{'Script Settings':^60}")
    logger.info("=" * 60)
    logger.info(f"  Input Path: {os.path.abspath(config.input_path)}")
    logger.info(f"  Output Directory: {os.path.abspath(config.output_path) if config.output_path else 'Beside each source file'}")
    logger.info(f"  Target Size: {config.target_width}x{config.target_height}")
    logger.info(f"  Output Format: {config.output_format} ({config.pil_format})")
    if config.pil_format == 'JPEG':
        logger.info(f"  JPEG Quality: {config.jpeg_quality}")
    logger.info(f"  Face Model: {config.model_path or 'Packaged frontal face cascade'}")
    logger.info(f"  Parallel Workers: {config.workers or 'All available CPU cores'}")
    logger.info(f"  Verbose Logging: {'Enabled' if config.verbose else 'Disabled'}")
    logger.info("=" * 60)


def log_summary(summary: BatchSummary) -> None:
    logger.info("-" * 40)
    logger.info(f"{'Processing Summary':^40}")
    logger.info("-" * 40)
    logger.info(f"  Entries dispatched: {summary.total}")
    logger.info(f"  Images resized successfully: {summary.succeeded}")
    logger.info(f"  Skipped (unsupported or broken): {summary.skipped}")
    logger.info(f"  Failed: {summary.failed}")
    if summary.unreadable_entries:
        logger.info(f"  Unreadable directory entries: {len(summary.unreadable_entries)}")
    failures = [o for o in summary.outcomes if o.status == STATUS_FAILED]
    for i, outcome in enumerate(failures):
        if i == 10:
            logger.info("    - ... (and more)")
            break
        logger.info(f"    - {os.path.basename(outcome.source_path)} [{outcome.stage}]: {outcome.reason}")
    logger.info(f"Total processing time: {summary.elapsed:.2f} seconds")


def run_batch(config: ResizeConfig, locator_factory: Optional[LocatorFactory] = None,
              show_progress: bool = True) -> BatchSummary:
    """
    Resizes every image directly inside config.input_path on a thread pool.
    Per-item failures never stop the batch; only setup problems raise
    (BatchSetupError, ModelLoadError).
    """
    input_dir = validate_input_directory(config.input_path)
    paths, unreadable = scan_directory(input_dir)

    if locator_factory is None:
        # A broken model is fatal: build one detector before any worker starts.
        get_face_locator(config.model_path)
        locator_factory = partial(get_face_locator, config.model_path)

    tasks = build_tasks(paths, config)
    summary = BatchSummary(total=len(tasks), unreadable_entries=unreadable)
    if not tasks:
        logger.info(f"  -> Info: No entries found in '{input_dir}'.")
        log_summary(summary)
        return summary

    workers = resolve_worker_count(config.workers, len(tasks))
    logger.info(f"  -> Info: Processing {len(tasks)} entries with {workers} worker thread(s).")

    start_time = time.time()
    progress = ProgressTracker(len(tasks), enabled=show_progress)
    try:
        with concurrent.futures.ThreadPoolExecutor(max_workers=workers, thread_name_prefix="resize") as executor:
            futures = [
                executor.submit(_run_and_advance, task, locator_factory, config.jpeg_quality, progress)
                for task in tasks
            ]
            for future in concurrent.futures.as_completed(futures):
                summary.outcomes.append(future.result())
    finally:
        progress.close("All images processed!")

    summary.elapsed = time.time() - start_time
    for outcome in summary.outcomes:
        if outcome.status == STATUS_SUCCESS:
            summary.succeeded += 1
        elif outcome.status == STATUS_SKIPPED:
            summary.skipped += 1
        else:
            summary.failed += 1

    log_summary(summary)
    return summary
