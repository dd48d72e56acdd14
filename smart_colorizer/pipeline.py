"""End-to-end SmartColorizer pipeline orchestrator."""

from __future__ import annotations

import itertools
import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, Dict, Optional

from smart_colorizer.config import BusyPolicy, PipelineConfig
from smart_colorizer.encoder import TensorEncoder
from smart_colorizer.errors import PipelineBusyError
from smart_colorizer.inference import InferenceInvoker, ensure_ready, invoke
from smart_colorizer.lightness import LuminanceExtractor
from smart_colorizer.reconstruction import ColorReconstructor, validate_chrominance_shape
from smart_colorizer.types import ColorizationResult, ImageLike, PipelineState

logger = logging.getLogger(__name__)

TransitionCallback = Callable[[int, PipelineState, PipelineState], None]

_TRANSITIONS = {
    PipelineState.IDLE: {PipelineState.ENCODING},
    PipelineState.ENCODING: {PipelineState.INFERRING, PipelineState.FAILED},
    PipelineState.INFERRING: {
        PipelineState.DECODING,
        PipelineState.CANCELLED,
        PipelineState.FAILED,
    },
    PipelineState.DECODING: {PipelineState.DONE, PipelineState.FAILED},
}


class ColorizationJob:
    """Handle for one colorization request.

    Cancellation is cooperative: it is honored only if it arrives before the
    request commits to decoding. :meth:`cancel` reports whether it will take
    effect.
    """

    def __init__(
        self,
        request_id: int,
        cancel_event: Optional[threading.Event] = None,
        on_transition: Optional[TransitionCallback] = None,
    ) -> None:
        self.request_id = request_id
        self._state = PipelineState.IDLE
        self._cancel_event = cancel_event or threading.Event()
        self._on_transition = on_transition
        self._lock = threading.Lock()
        self._future: Optional[Future] = None

    @property
    def state(self) -> PipelineState:
        return self._state

    @property
    def cancel_requested(self) -> bool:
        return self._cancel_event.is_set()

    def cancel(self) -> bool:
        with self._lock:
            if self._state is PipelineState.DECODING or self._state.terminal:
                return False
            self._cancel_event.set()
            return True

    def done(self) -> bool:
        return self._state.terminal

    def result(self, timeout: Optional[float] = None) -> ColorizationResult:
        """Wait for a submitted request; re-raises its error if it failed."""

        if self._future is None:
            raise RuntimeError(f"Request {self.request_id} was not submitted to a worker.")
        return self._future.result(timeout)

    def _set_state(self, new_state: PipelineState) -> PipelineState:
        old_state = self._state
        if new_state not in _TRANSITIONS.get(old_state, ()):
            raise RuntimeError(
                f"Illegal transition {old_state.value} -> {new_state.value} "
                f"for request {self.request_id}"
            )
        self._state = new_state
        return old_state

    def _notify(self, old_state: PipelineState, new_state: PipelineState) -> None:
        logger.debug("Request %d: %s -> %s", self.request_id, old_state.value, new_state.value)
        if self._on_transition is not None:
            self._on_transition(self.request_id, old_state, new_state)

    def transition(self, new_state: PipelineState) -> None:
        with self._lock:
            old_state = self._set_state(new_state)
        self._notify(old_state, new_state)

    def commit_decoding(self) -> bool:
        """Move to DECODING, or to CANCELLED if cancellation was signalled."""

        with self._lock:
            target = PipelineState.CANCELLED if self._cancel_event.is_set() else PipelineState.DECODING
            old_state = self._set_state(target)
        self._notify(old_state, target)
        return target is PipelineState.DECODING


class ColorizationPipeline:
    """Orchestrates encoding, inference and reconstruction.

    Flow for one request:
        1) Encoding: the captured image becomes the planar RGB input tensor.
        2) Inferring: the invoker predicts a*b*; its shape is validated.
        3) Cancellation is checked once. If set, the prediction is discarded.
        4) Decoding: lightness is read from the original image and fused with
           the prediction into an RGBA image.

    At most one request is in flight per pipeline. ``PipelineConfig.busy_policy``
    decides whether a second request is rejected or replaces the first. A
    replacing request cancels the first and starts only once it has finished.
    """

    def __init__(
        self,
        invoker: Optional[InferenceInvoker] = None,
        config: Optional[PipelineConfig] = None,
        *,
        encoder: Optional[TensorEncoder] = None,
        extractor: Optional[LuminanceExtractor] = None,
        reconstructor: Optional[ColorReconstructor] = None,
        on_transition: Optional[TransitionCallback] = None,
    ) -> None:
        self.config = config or PipelineConfig()
        self.invoker = invoker
        self.encoder = encoder or TensorEncoder(self.config.encoder)
        self.extractor = extractor or LuminanceExtractor(self.config.lightness)
        self.reconstructor = reconstructor or ColorReconstructor(self.config.reconstruction)
        self.on_transition = on_transition
        self._lock = threading.Lock()
        # Held while a request executes; a replacing request waits on it.
        self._run_lock = threading.Lock()
        self._ids = itertools.count(1)
        self._active: Optional[ColorizationJob] = None
        self._last: Optional[ColorizationJob] = None
        self._executor: Optional[ThreadPoolExecutor] = None

    @property
    def state(self) -> PipelineState:
        """State of the in-flight request, else of the most recent one."""

        job = self._active or self._last
        return job.state if job is not None else PipelineState.IDLE

    @property
    def busy(self) -> bool:
        job = self._active
        return job is not None and not job.state.terminal

    def _admit(self, cancel_event: Optional[threading.Event] = None) -> ColorizationJob:
        ensure_ready(self.invoker)
        with self._lock:
            active = self._active
            if active is not None and not active.state.terminal:
                if self.config.busy_policy is BusyPolicy.REJECT:
                    raise PipelineBusyError(
                        f"Request {active.request_id} is still {active.state.value}."
                    )
                replaced = active.cancel()
                logger.info(
                    "Replacing request %d (%s, cancel %s)",
                    active.request_id,
                    active.state.value,
                    "accepted" if replaced else "too late",
                )
            job = ColorizationJob(next(self._ids), cancel_event, self.on_transition)
            self._active = job
        return job

    def _release(self, job: ColorizationJob) -> None:
        with self._lock:
            self._last = job
            if self._active is job:
                self._active = None

    def _execute(self, job: ColorizationJob, image: ImageLike) -> ColorizationResult:
        if not self._run_lock.acquire(blocking=False):
            logger.debug("Request %d waiting for the displaced request to finish", job.request_id)
            self._run_lock.acquire()
        try:
            return self._process(job, image)
        finally:
            self._run_lock.release()

    def _process(self, job: ColorizationJob, image: ImageLike) -> ColorizationResult:
        timings: Dict[str, float] = {}
        started = time.perf_counter()
        try:
            job.transition(PipelineState.ENCODING)
            mark = time.perf_counter()
            tensor = self.encoder.encode(image)
            timings["encode"] = time.perf_counter() - mark

            job.transition(PipelineState.INFERRING)
            mark = time.perf_counter()
            output = invoke(self.invoker, tensor)
            chrominance = validate_chrominance_shape(output, self.reconstructor.config.size)
            timings["inference"] = time.perf_counter() - mark

            if not job.commit_decoding():
                logger.info("Request %d cancelled; discarding inference output", job.request_id)
                return ColorizationResult(
                    state=PipelineState.CANCELLED, request_id=job.request_id, timings=timings
                )

            mark = time.perf_counter()
            lightness = self.extractor.extract_lightness(image)
            timings["lightness"] = time.perf_counter() - mark
            mark = time.perf_counter()
            colorized = self.reconstructor.reconstruct(lightness, chrominance)
            timings["reconstruct"] = time.perf_counter() - mark

            job.transition(PipelineState.DONE)
        except Exception as exc:
            if not job.state.terminal:
                job.transition(PipelineState.FAILED)
            logger.warning(
                "Request %d failed: %s: %s", job.request_id, type(exc).__name__, exc
            )
            raise
        finally:
            self._release(job)

        logger.info(
            "Request %d done in %.1f ms", job.request_id, (time.perf_counter() - started) * 1000.0
        )
        return ColorizationResult(
            state=PipelineState.DONE,
            request_id=job.request_id,
            image=colorized,
            timings=timings,
        )

    def run(
        self, image: ImageLike, cancel_event: Optional[threading.Event] = None
    ) -> ColorizationResult:
        """Colorize ``image`` in the calling thread.

        Returns a DONE result carrying the RGBA image, or a CANCELLED result if
        ``cancel_event`` (or :meth:`cancel`) fired before decoding began.
        Under the REPLACE policy it first waits for the displaced request.

        Raises:
            ModelNotLoadedError: the invoker is missing or not loaded.
            PipelineBusyError: another request is in flight (REJECT policy).
            EncodeError, InferenceError, ShapeError, ConversionError: the
                request failed; nothing is produced.
        """

        job = self._admit(cancel_event)
        return self._execute(job, image)

    __call__ = run

    def submit(self, image: ImageLike) -> ColorizationJob:
        """Colorize ``image`` on the pipeline's worker thread."""

        job = self._admit()
        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=1, thread_name_prefix=self.config.thread_name_prefix
            )
        try:
            job._future = self._executor.submit(self._execute, job, image)
        except RuntimeError:
            self._release(job)
            raise
        return job

    def cancel(self) -> bool:
        """Signal the in-flight request; False if there is none or it is too late."""

        with self._lock:
            job = self._active
        if job is None:
            return False
        return job.cancel()

    def close(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    def __enter__(self) -> "ColorizationPipeline":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
