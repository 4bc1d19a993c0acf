"""
Main image cataloging pipeline orchestrator.

Coordinates all pipeline stages:
1. File discovery
2. Metadata extraction
3. Catalog storage

Every file gets a ProcessingResult. A failure in one file is reported and
counted; it never stops the run. Only an unreadable scan root is fatal.

With more than one worker, extraction runs on a thread pool while all
writes stay on the calling thread, which owns the store.
"""

import logging
import time
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Callable, Iterable

from scanner.catalog_store import CatalogStore
from scanner.errors import CatalogError, StorageError
from scanner.file_walker import FileWalker
from scanner.metadata_extractor import ImageRecord, MetadataExtractor

logger = logging.getLogger(__name__)


class ProcessingStage(Enum):
    """Pipeline stage a file failed in."""
    EXTRACT = "extract"
    PERSIST = "persist"


@dataclass
class ProcessingResult:
    """Result of processing a single image."""
    filepath: Path
    success: bool
    record: ImageRecord | None = None
    image_id: int | None = None
    stage: ProcessingStage | None = None
    error_kind: str | None = None
    error: str | None = None
    processing_time: float = 0.0

    @classmethod
    def failure(
        cls,
        filepath: Path,
        stage: ProcessingStage,
        error: Exception,
    ) -> "ProcessingResult":
        """Build a failed result from the exception that caused it."""
        kind = error.kind if isinstance(error, CatalogError) else "unexpected"
        return cls(
            filepath=filepath,
            success=False,
            stage=stage,
            error_kind=kind,
            error=str(error),
        )


@dataclass
class PipelineStats:
    """Statistics for a pipeline run."""
    processed: int = 0
    succeeded: int = 0
    failed: int = 0
    workers: int = 1
    interrupted: bool = False
    start_time: datetime = field(default_factory=datetime.now)
    end_time: datetime | None = None
    failures: list[ProcessingResult] = field(default_factory=list)

    @property
    def duration_seconds(self) -> float:
        """Get total duration in seconds."""
        if self.end_time:
            return (self.end_time - self.start_time).total_seconds()
        return 0.0

    def add(self, result: ProcessingResult) -> None:
        """Count a finished file."""
        self.processed += 1
        if result.success:
            self.succeeded += 1
        else:
            self.failed += 1
            self.failures.append(result)

    def summary(self) -> str:
        """Generate summary string."""
        lines = [
            "=" * 50,
            "Cataloging Interrupted" if self.interrupted else "Cataloging Complete",
            "=" * 50,
            f"Images processed: {self.processed}",
            f"Succeeded: {self.succeeded}",
            f"Failed: {self.failed}",
            f"Duration: {self.duration_seconds:.1f} seconds",
        ]

        if self.failures:
            lines.append("")
            lines.append("Failed images:")
            for r in self.failures:
                lines.append(
                    f"  - {r.filepath} [{r.stage.value}/{r.error_kind}]: {r.error}"
                )

        return "\n".join(lines)


class ImageProcessor:
    """
    Pipeline processor for cataloging a directory tree.

    Walks the tree, extracts metadata from each candidate file and upserts
    it into the catalog store.
    """

    def __init__(
        self,
        store: CatalogStore,
        walker: FileWalker | None = None,
        extractor: MetadataExtractor | None = None,
        workers: int = 1,
        progress_callback: Callable[[int, Path], None] | None = None
    ):
        """
        Initialize the image processor.

        Args:
            store: Open catalog store; the processor does not close it.
            walker: File walker. Defaults to FileWalker().
            extractor: Metadata extractor. Defaults to MetadataExtractor().
            workers: Extraction threads. 1 runs everything sequentially.
            progress_callback: Callback(count, filepath) after each file.
        """
        if workers < 1:
            raise ValueError(f"workers must be at least 1, got {workers}")

        self.store = store
        self.walker = walker or FileWalker()
        self.extractor = extractor or MetadataExtractor()
        self.workers = workers
        self.progress_callback = progress_callback

    def process_directory(self, directory: str | Path) -> PipelineStats:
        """
        Catalog all images under a directory.

        Args:
            directory: Root of the tree to catalog.

        Returns:
            PipelineStats with processing results.

        Raises:
            ImageIOError: If the directory can't be read.
        """
        directory = Path(directory)
        stats = PipelineStats(workers=self.workers)

        logger.info(f"Starting catalog run for: {directory} (workers: {self.workers})")

        paths = self.walker.walk(directory)

        try:
            if self.workers > 1:
                self._run_parallel(paths, stats)
            else:
                self._run_sequential(paths, stats)
        except KeyboardInterrupt:
            stats.interrupted = True
            logger.warning("Interrupted: no further files will be dispatched")

        stats.end_time = datetime.now()
        logger.info(stats.summary())

        return stats

    def process_single(self, filepath: str | Path) -> ProcessingResult:
        """
        Extract and store a single image.

        Args:
            filepath: Path to the image file.

        Returns:
            ProcessingResult with outcome details.
        """
        result = self._extract(Path(filepath))
        if result.success:
            result = self._persist(result)
        return result

    def _run_sequential(self, paths: Iterable[Path], stats: PipelineStats) -> None:
        for filepath in paths:
            self._finish(self.process_single(filepath), stats)

    def _run_parallel(self, paths: Iterable[Path], stats: PipelineStats) -> None:
        # Bounded so a huge tree is not queued up front
        window = self.workers * 2
        pending: set[Future] = set()

        with ThreadPoolExecutor(
            max_workers=self.workers,
            thread_name_prefix="extract"
        ) as executor:
            try:
                for filepath in paths:
                    pending.add(executor.submit(self._extract, filepath))
                    if len(pending) >= window:
                        done, pending = wait(pending, return_when=FIRST_COMPLETED)
                        self._store_completed(done, stats)

                while pending:
                    done, pending = wait(pending, return_when=FIRST_COMPLETED)
                    self._store_completed(done, stats)
            except KeyboardInterrupt:
                for future in pending:
                    future.cancel()
                raise

    def _store_completed(self, done: set[Future], stats: PipelineStats) -> None:
        """Persist finished extractions on the store-owning thread."""
        for future in done:
            result = future.result()
            if result.success:
                result = self._persist(result)
            self._finish(result, stats)

    def _extract(self, filepath: Path) -> ProcessingResult:
        start_time = time.time()

        try:
            logger.debug(f"Extracting metadata: {filepath.name}")
            record = self.extractor.extract(filepath)
        except Exception as e:
            result = ProcessingResult.failure(filepath, ProcessingStage.EXTRACT, e)
        else:
            result = ProcessingResult(filepath=filepath, success=True, record=record)

        result.processing_time = time.time() - start_time
        return result

    def _persist(self, result: ProcessingResult) -> ProcessingResult:
        start_time = time.time()

        try:
            result.image_id = self.store.upsert(result.record)
        except StorageError as e:
            failed = ProcessingResult.failure(result.filepath, ProcessingStage.PERSIST, e)
            failed.processing_time = result.processing_time + time.time() - start_time
            return failed

        result.processing_time += time.time() - start_time
        return result

    def _finish(self, result: ProcessingResult, stats: PipelineStats) -> None:
        stats.add(result)

        if result.success:
            record = result.record
            logger.info(
                f"Cataloged: {result.filepath.name} (ID: {result.image_id}, "
                f"{record.width}x{record.height} {record.format.value}, "
                f"{result.processing_time:.2f}s)"
            )
        else:
            logger.error(
                f"Failed to {result.stage.value} {result.filepath} "
                f"[{result.error_kind}]: {result.error}"
            )

        if self.progress_callback:
            self.progress_callback(stats.processed, result.filepath)


def catalog_directory(
    directory: str | Path,
    db_path: str | Path | None = None,
    workers: int = 1,
    progress_callback: Callable[[int, Path], None] | None = None
) -> PipelineStats:
    """
    Convenience function to catalog a directory into a store file.

    The store is opened for the run and closed on every exit path.

    Args:
        directory: Root of the tree to catalog.
        db_path: Catalog file. Defaults to CATALOG_DB_PATH.
        workers: Extraction threads.
        progress_callback: Callback(count, filepath) after each file.

    Returns:
        PipelineStats with results.
    """
    with CatalogStore(db_path) as store:
        processor = ImageProcessor(
            store,
            workers=workers,
            progress_callback=progress_callback
        )
        return processor.process_directory(directory)
