"""Asynchronous tile production pipeline.

Generation runs on a bounded worker pool. Finished results are queued on
one channel per result type and handed back to a single consumer thread,
which calls :meth:`TerrainPipeline.drain` once per tick to run the
completion callbacks.

Threading contract:
    * ``drain`` is only ever called from the consumer thread.
    * Callbacks run on the consumer thread without any pipeline lock held.
      They may issue new requests but must not call ``drain``.

Usage:
    pipeline = TerrainPipeline(settings)

    def on_height_data(map_data):
        pipeline.request_mesh_data(map_data, display_mesh)

    pipeline.request_height_data(on_height_data)

    # Once per tick on the consumer thread:
    pipeline.drain()
"""

import threading
from collections import deque
from concurrent import futures
from dataclasses import dataclass
from typing import Any, Callable, Generic, TypeVar

import structlog

from .config import MapGeneratorSettings, NoiseParameters, RegionTable
from .exceptions import GenerationError, PipelineBusyError, PipelineClosedError
from .generator import MapData, generate_map_data
from .mesh import MeshData, clamp_level_of_detail, generate_terrain_mesh

logger = structlog.get_logger()

T = TypeVar("T")


@dataclass(frozen=True)
class ThreadInfo(Generic[T]):
    """A completion callback paired with the result computed for it.

    Exactly one of ``parameter`` and ``error`` is meaningful: ``error`` is
    set when the worker failed.
    """

    callback: Callable[[T], Any]
    parameter: T | None = None
    error: BaseException | None = None


class ResultChannel(Generic[T]):
    """FIFO of finished results for one result type.

    The lock only covers the queue operations themselves.
    """

    def __init__(self, name: str):
        self.name = name
        self._items: deque[ThreadInfo[T]] = deque()
        self._lock = threading.Lock()

    def put(self, info: ThreadInfo[T]) -> None:
        with self._lock:
            self._items.append(info)

    def swap(self) -> list[ThreadInfo[T]]:
        """Atomically take everything queued so far, oldest first."""
        with self._lock:
            items, self._items = self._items, deque()
        return list(items)

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)


class TerrainPipeline:
    """Runs tile generation off the consumer thread.

    A request is Requested on the caller's thread, Computing on a worker,
    Queued on its channel, and Delivered when ``drain`` invokes its
    callback. Requests are never cancelled and are delivered exactly once.
    """

    def __init__(
        self,
        settings: MapGeneratorSettings | None = None,
        max_workers: int | None = None,
        max_pending: int | None = None,
    ):
        self.settings = settings or MapGeneratorSettings()
        self.max_workers = max_workers or self.settings.pipeline.max_workers
        self.max_pending = max_pending or self.settings.pipeline.max_pending

        self._height_channel: ResultChannel[MapData] = ResultChannel("height_data")
        self._mesh_channel: ResultChannel[MeshData] = ResultChannel("mesh_data")

        self._executor = futures.ThreadPoolExecutor(
            max_workers=self.max_workers, thread_name_prefix="tilegen"
        )
        self._state_lock = threading.Lock()
        self._futures: set[futures.Future] = set()
        self._pending = 0
        self._closed = False

    @property
    def in_flight(self) -> int:
        """Requests submitted whose result is not yet queued."""
        with self._state_lock:
            return self._pending

    @property
    def queued(self) -> int:
        """Results waiting for the next drain."""
        return len(self._height_channel) + len(self._mesh_channel)

    @property
    def is_closed(self) -> bool:
        return self._closed

    def request_height_data(
        self,
        callback: Callable[[MapData], Any],
        params: NoiseParameters | None = None,
        regions: RegionTable | None = None,
    ) -> None:
        """Generate a height field and its region colors in the background.

        Returns immediately; ``callback`` receives the MapData during a
        later ``drain``.

        Args:
            callback: Called with the MapData on the consumer thread.
            params: Noise parameters; defaults to the settings' noise.
            regions: Region table; defaults to the settings' regions.

        Raises:
            PipelineBusyError: If max_pending requests are already in flight.
            PipelineClosedError: If the pipeline has been closed.
        """
        if params is None:
            params = self.settings.noise
        if regions is None:
            regions = self.settings.regions

        self._submit(self._height_channel, callback, generate_map_data, params, regions)
        logger.debug("height_data_requested", seed=params.seed)

    def request_mesh_data(
        self,
        map_data: MapData,
        callback: Callable[[MeshData], Any],
        level_of_detail: int | None = None,
    ) -> None:
        """Build a mesh from already generated map data in the background.

        The settings' height curve is snapshotted here, on the requesting
        thread, so later edits to ``settings.height_curve`` only affect
        later requests.

        Args:
            map_data: Result of a previous height data request.
            callback: Called with the MeshData on the consumer thread.
            level_of_detail: Simplification level; defaults to the settings'.
                Clamped to [0, 6].

        Raises:
            PipelineBusyError: If max_pending requests are already in flight.
            PipelineClosedError: If the pipeline has been closed.
        """
        if level_of_detail is None:
            level_of_detail = self.settings.level_of_detail
        level_of_detail = clamp_level_of_detail(level_of_detail)
        curve = self.settings.height_curve.to_curve().snapshot()

        self._submit(
            self._mesh_channel,
            callback,
            generate_terrain_mesh,
            map_data.height_map,
            self.settings.mesh_height_multiplier,
            curve,
            level_of_detail,
        )
        logger.debug("mesh_data_requested", level_of_detail=level_of_detail)

    def drain(self) -> int:
        """Deliver every result queued so far on the calling thread.

        Both channels are swapped out before any callback runs, so results
        of requests made by these callbacks wait for the next drain. Within
        a channel callbacks run in the order results were queued.

        If a worker failed or a callback raised, the rest of the batch is
        still delivered and then the first error is raised, with every
        later error attached to it as a note.

        Returns:
            Number of callbacks invoked.

        Raises:
            GenerationError: If a worker failed to produce a result.
        """
        batches = [
            (self._height_channel.name, self._height_channel.swap()),
            (self._mesh_channel.name, self._mesh_channel.swap()),
        ]

        delivered = 0
        errors: list[BaseException] = []
        for name, batch in batches:
            for info in batch:
                if info.error is not None:
                    errors.append(info.error)
                    continue
                try:
                    info.callback(info.parameter)
                except Exception as exc:
                    logger.exception("callback_failed", channel=name)
                    errors.append(exc)
                delivered += 1

        if delivered or errors:
            logger.debug("drain_complete", delivered=delivered, failed=len(errors))

        if errors:
            first = errors[0]
            for other in errors[1:]:
                first.add_note(f"also failed in this drain: {other!r}")
            raise first
        return delivered

    def wait_until_idle(self, timeout: float | None = None) -> bool:
        """Block until every request submitted so far has been queued.

        Meant for tests and shutdown; the consumer tick never calls this.

        Returns:
            True if all requests finished, False on timeout.
        """
        with self._state_lock:
            pending = list(self._futures)
        _, not_done = futures.wait(pending, timeout=timeout)
        return not not_done

    def close(self, wait: bool = True) -> None:
        """Stop accepting requests and shut the worker pool down.

        Results already queued or still computing can still be drained.
        """
        with self._state_lock:
            if self._closed:
                return
            self._closed = True
        self._executor.shutdown(wait=wait)
        logger.info("pipeline_closed", queued=self.queued)

    def __enter__(self) -> "TerrainPipeline":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _submit(
        self,
        channel: ResultChannel[T],
        callback: Callable[[T], Any],
        work: Callable[..., T],
        *args: Any,
    ) -> None:
        with self._state_lock:
            if self._closed:
                raise PipelineClosedError("Pipeline is closed")
            if self._pending >= self.max_pending:
                logger.warning(
                    "request_rejected_busy",
                    channel=channel.name,
                    max_pending=self.max_pending,
                )
                raise PipelineBusyError(
                    f"{self._pending} requests in flight (max {self.max_pending})"
                )
            future = self._executor.submit(self._run, channel, callback, work, *args)
            self._futures.add(future)
            self._pending += 1
        future.add_done_callback(self._discard)

    def _discard(self, future: futures.Future) -> None:
        with self._state_lock:
            self._futures.discard(future)

    def _run(
        self,
        channel: ResultChannel[T],
        callback: Callable[[T], Any],
        work: Callable[..., T],
        *args: Any,
    ) -> None:
        """Worker body: compute, then queue the result or the failure.

        The pending slot is released before the future completes, so anyone
        woken by the future already sees the capacity.
        """
        try:
            result = work(*args)
        except Exception as exc:
            logger.exception("generation_failed", channel=channel.name)
            error = GenerationError(f"{channel.name} generation failed: {exc}")
            error.__cause__ = exc
            channel.put(ThreadInfo(callback=callback, error=error))
        else:
            channel.put(ThreadInfo(callback=callback, parameter=result))
            logger.debug("result_queued", channel=channel.name)
        finally:
            with self._state_lock:
                self._pending -= 1
