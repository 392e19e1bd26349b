"""Three-stage transfer pipeline: producer | meter | consumer.

The producer (``zfs send``) and the consumer (``zfs receive``) are
processes, possibly on different hosts. Between them an in-process meter
copies the stream in fixed-size chunks and reports progress against the
size learned from a dry run. Both links are OS pipes, so each stage blocks
when its neighbour falls behind.

All stages are started before any is waited on, and the join waits for
every stage. When a stage fails it closes its pipe ends, which lets the
others run into EOF or a broken pipe and finish instead of hanging.
"""

import logging
import re
import subprocess
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, Optional

from rich.progress import (
    BarColumn,
    DownloadColumn,
    Progress,
    TextColumn,
    TimeRemainingColumn,
    TransferSpeedColumn,
)

from .. import __util__
from ..__logger__ import get_console

logger = logging.getLogger(__name__)

CHUNK_SIZE = 128 * 1024
ABORT_TIMEOUT = 5.0
SIZE_RE = re.compile(r"^size\t(\d+)$", re.MULTILINE)


def parse_send_size(report: str) -> Optional[int]:
    """Return the stream size from ``zfs send -n -P`` output, None if absent."""
    match = SIZE_RE.search(report)
    if match is None:
        return None
    return int(match.group(1))


class NullReporter:
    """Progress reporter that only logs a summary."""

    def __init__(self, description: str = "") -> None:
        self.description = description
        self.total: Optional[int] = None
        self.done = 0

    def start(self, total: Optional[int]) -> None:
        self.total = total

    def advance(self, count: int) -> None:
        self.done += count

    def finish(self) -> None:
        logger.debug(
            "%s: %s transferred", self.description, __util__.humanize_size(self.done)
        )


class RichProgressReporter(NullReporter):
    """Render transfer progress as a rich progress bar."""

    def __init__(self, description: str = "", console=None) -> None:
        super().__init__(description)
        self._progress = Progress(
            TextColumn("[bold blue]{task.description}"),
            BarColumn(),
            DownloadColumn(binary_units=True),
            TransferSpeedColumn(),
            TimeRemainingColumn(),
            console=console or get_console(),
            transient=True,
        )
        self._task = None

    def start(self, total: Optional[int]) -> None:
        super().start(total)
        self._progress.start()
        self._task = self._progress.add_task(self.description, total=total)

    def advance(self, count: int) -> None:
        super().advance(count)
        if self._task is not None:
            self._progress.update(self._task, advance=count)

    def finish(self) -> None:
        self._progress.stop()
        super().finish()


class ProcessStage:
    """A pipeline stage backed by an external process."""

    def __init__(self, name: str, spawn: Callable[[], subprocess.Popen]) -> None:
        self.name = name
        self._spawn = spawn
        self.process: Optional[subprocess.Popen] = None

    def start(self) -> None:
        self.process = self._spawn()
        if self.process is None:
            raise __util__.SnapshotTransferError(f"{self.name} failed to start")

    def wait(self) -> None:
        returncode = self.process.wait()
        if returncode != 0:
            raise __util__.CommandError(
                self.process.args, returncode, operation=self.name
            )

    def abort(self) -> None:
        if self.process is None:
            return
        for pipe in (self.process.stdin, self.process.stdout):
            if pipe:
                pipe.close()
        if self.process.poll() is None:
            self.process.kill()
        self.process.wait()


class MeterStage:
    """Copy the producer's output to the consumer, reporting progress."""

    name = "meter"

    def __init__(
        self,
        producer: ProcessStage,
        consumer: ProcessStage,
        size: Optional[int] = None,
        reporter=None,
        chunk_size: int = CHUNK_SIZE,
    ) -> None:
        self.producer = producer
        self.consumer = consumer
        self.size = size
        self.reporter = reporter or NullReporter()
        self.chunk_size = chunk_size
        self.transferred = 0
        self._thread: Optional[threading.Thread] = None
        self._error: Optional[Exception] = None
        self._stop = threading.Event()

    def start(self) -> None:
        source = self.producer.process.stdout
        sink = self.consumer.process.stdin
        self.reporter.start(self.size)
        self._thread = threading.Thread(
            target=self._run, args=(source, sink), name="transfer-meter", daemon=True
        )
        self._thread.start()

    def _run(self, source, sink) -> None:
        read = getattr(source, "read1", source.read)
        try:
            while True:
                if self._stop.is_set():
                    raise __util__.SnapshotTransferError("meter aborted")
                chunk = read(self.chunk_size)
                if not chunk:
                    break
                sink.write(chunk)
                self.transferred += len(chunk)
                self.reporter.advance(len(chunk))
            sink.flush()
        except Exception as e:  # re-raised from wait()
            self._error = e
        finally:
            for pipe in (sink, source):
                try:
                    pipe.close()
                except OSError as e:
                    if self._error is None:
                        self._error = e
            self.reporter.finish()

    def wait(self) -> None:
        self._thread.join()
        if self._error is not None:
            raise __util__.SnapshotTransferError(
                f"meter failed after {self.transferred} bytes: {self._error!r}"
            ) from self._error

    def abort(self) -> None:
        """Stop copying and release both pipe ends.

        A running copy thread closes the pipes itself once it sees the stop
        request, or once a neighbour's abort ends its blocked read or write.
        """
        self._stop.set()
        if self._thread is None:
            source = self.producer.process and self.producer.process.stdout
            sink = self.consumer.process and self.consumer.process.stdin
            for pipe in (sink, source):
                if pipe:
                    pipe.close()
            return
        self._thread.join(ABORT_TIMEOUT)
        if self._thread.is_alive():
            logger.warning("Meter still blocked %.0fs after abort", ABORT_TIMEOUT)


class TransferPipeline:
    """Run producer, meter and consumer together and join them."""

    def __init__(self, producer, meter, consumer) -> None:
        self.producer = producer
        self.meter = meter
        self.consumer = consumer

    @property
    def stages(self) -> list:
        return [self.producer, self.consumer, self.meter]

    def start(self) -> None:
        """Start every stage; on failure tear down the ones already running."""
        started = []
        try:
            for stage in self.stages:
                stage.start()
                started.append(stage)
        except Exception:
            for stage in reversed(started):
                stage.abort()
            raise

    def join(self) -> None:
        """Wait for all stages and raise the first failure.

        Failures of the producer or consumer win over the meter's, which
        usually only reports the broken pipe caused by them.
        """
        failures = []
        with ThreadPoolExecutor(
            max_workers=len(self.stages), thread_name_prefix="transfer-join"
        ) as pool:
            futures = {pool.submit(stage.wait): stage for stage in self.stages}
            for future in as_completed(futures):
                error = future.exception()
                if error is not None:
                    stage = futures[future]
                    logger.debug("Stage %s failed: %s", stage.name, error)
                    failures.append((stage, error))

        if not failures:
            return
        process_failures = [e for s, e in failures if s is not self.meter]
        raise (process_failures or [failures[0][1]])[0]

    def run(self) -> None:
        self.start()
        self.join()


def build_transfer_pipeline(
    source_endpoint,
    destination_endpoint,
    send_args,
    destination: str,
    size: Optional[int] = None,
    reporter=None,
) -> TransferPipeline:
    """Wire ``zfs send`` on the source to ``zfs receive`` on the destination."""
    producer = ProcessStage(
        f"send {' '.join(send_args)}",
        lambda: source_endpoint.send(send_args, stdout=subprocess.PIPE),
    )
    consumer = ProcessStage(
        f"receive {destination}",
        lambda: destination_endpoint.receive(destination, stdin=subprocess.PIPE),
    )
    meter = MeterStage(producer, consumer, size=size, reporter=reporter)
    return TransferPipeline(producer, meter, consumer)
