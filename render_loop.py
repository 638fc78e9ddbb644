# render_loop.py
# Detect -> track -> draw cycle and its lifecycle state machine.

import logging
from enum import Enum
from typing import Callable, List, Optional

from config import TICK_INTERVAL_MS
from detection_worker import DETECT, LOAD, WorkerJob, WorkerResult
from errors import ModelUnavailable
from face_matcher import MatchResult
from identity_tracker import DetectedFace, DrawOrder, IdentityTracker
from overlay_renderer import OverlayRenderer
from scheduler import RepeatingTask

logger = logging.getLogger(__name__)


class LoopState(Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    RUNNING = "running"
    PAUSED = "paused"
    STOPPED = "stopped"


class FrameRenderLoop:
    """Drives one camera feed through the detectors, the tracker and the renderer.

    Collaborators:
      * ``worker``: ``submit(WorkerJob)`` / ``poll() -> [WorkerResult]``
      * ``models``: ``load()`` and ``analyze(frame) -> FrameAnalysis``
      * ``frame_source``: ``open() -> bool``, ``read() -> (ok, frame)``,
        ``size`` (None until the stream reports its dimensions), ``release()``
      * ``display``: ``show(frame)`` and ``clear()``
      * ``matcher_provider``: returns the current FaceMatcher or None
      * ``class_filter``: ``filter(objects)``; None hides all objects

    All state below is only touched from ``tick`` and the lifecycle methods,
    which run on the scheduler's thread. At most one detection is in flight;
    results submitted before the last reset are thrown away.
    """

    def __init__(
        self,
        scheduler,
        worker,
        models,
        frame_source,
        display,
        tracker: Optional[IdentityTracker] = None,
        renderer: Optional[OverlayRenderer] = None,
        matcher_provider: Optional[Callable] = None,
        class_filter=None,
        interval_ms: int = TICK_INTERVAL_MS,
        on_state_change: Optional[Callable[[LoopState, Optional[str]], None]] = None,
    ):
        self.worker = worker
        self.models = models
        self.frame_source = frame_source
        self.display = display
        self.tracker = tracker or IdentityTracker()
        self.renderer = renderer or OverlayRenderer()
        self.matcher_provider = matcher_provider or (lambda: None)
        self.class_filter = class_filter
        self.on_state_change = on_state_change

        self.state = LoopState.IDLE
        self._task = RepeatingTask(scheduler, interval_ms, self.tick)
        self._generation = 0
        self._in_flight = False
        self._reset_pending = False
        self._frame_shape = None
        self._draw_orders: List[DrawOrder] = []
        self._objects = []
        self.frames_dropped = 0

    # ---------- Lifecycle ----------

    def _set_state(self, state: LoopState, message: Optional[str] = None):
        if state == self.state:
            return
        logger.info(f"FrameRenderLoop: {self.state.value} -> {state.value}" + (f" ({message})" if message else ""))
        self.state = state
        if self.on_state_change:
            self.on_state_change(state, message)

    def start(self):
        """Idle -> Loading: begin model initialization on the worker."""
        if self.state != LoopState.IDLE:
            return
        self._set_state(LoopState.LOADING)
        self.worker.submit(WorkerJob(LOAD, self._generation, self.models.load))
        self._task.start()

    def pause(self):
        if self.state != LoopState.RUNNING:
            return
        self._task.stop()
        self._reset()
        self._set_state(LoopState.PAUSED)

    def resume(self):
        if self.state != LoopState.PAUSED:
            return
        self._set_state(LoopState.RUNNING)
        self._task.start()

    def stop(self):
        if self.state == LoopState.STOPPED:
            return
        self._task.stop()
        self._reset()
        self.worker.stop()
        self.frame_source.release()
        self._set_state(LoopState.STOPPED)

    def request_reset(self, reason: str = ""):
        """Discard tracked identities at the start of the next tick."""
        logger.debug(f"FrameRenderLoop: reset requested ({reason})")
        self._reset_pending = True

    @property
    def detection_in_flight(self) -> bool:
        return self._in_flight

    # ---------- Tick ----------

    def tick(self):
        if self.state == LoopState.LOADING:
            self._collect()
            return
        if self.state == LoopState.READY:
            self._await_stream()
            return
        if self.state != LoopState.RUNNING:
            return

        if self._reset_pending:
            self._reset()
        self._collect()

        ok, frame = self.frame_source.read()
        if not ok or frame is None:
            logger.debug("FrameRenderLoop: no frame this tick")
            return

        if self._frame_shape is not None and frame.shape[:2] != self._frame_shape:
            logger.info(f"FrameRenderLoop: frame size changed {self._frame_shape} -> {frame.shape[:2]}")
            self._reset()
        self._frame_shape = frame.shape[:2]

        if self._in_flight:
            self.frames_dropped += 1
            logger.debug("FrameRenderLoop: detection still running, skipping submission")
        else:
            job = WorkerJob(DETECT, self._generation, self.models.analyze, (frame.copy(),))
            self._in_flight = self.worker.submit(job)
            self._collect()

        annotated = self.renderer.render(frame.copy(), self._draw_orders, self._objects)
        self.display.show(annotated)

    def _await_stream(self):
        if self.frame_source.size is None:
            if not self.frame_source.open():
                logger.debug("FrameRenderLoop: stream dimensions not ready yet")
                return
            if self.frame_source.size is None:
                return
        self._set_state(LoopState.RUNNING, "stream %dx%d" % tuple(self.frame_source.size))

    def _collect(self):
        for result in self.worker.poll():
            if result.kind == LOAD:
                self._on_loaded(result)
            elif result.kind == DETECT:
                self._on_detection(result)

    def _on_loaded(self, result: WorkerResult):
        if not result.ok:
            self._task.stop()
            message = f"error loading models: {result.error}"
            logger.error(f"FrameRenderLoop: {message}")
            if self.on_state_change:
                self.on_state_change(self.state, message)
            return
        self._set_state(LoopState.READY)
        self._await_stream()

    def _on_detection(self, result: WorkerResult):
        self._in_flight = False
        if result.generation != self._generation:
            logger.debug(f"FrameRenderLoop: discarding result from generation {result.generation}")
            return

        if not result.ok:
            if isinstance(result.error, ModelUnavailable):
                logger.debug(f"FrameRenderLoop: model unavailable: {result.error}")
            else:
                logger.warning(f"FrameRenderLoop: detection failed: {result.error}")
            self._draw_orders = []
            self._objects = []
            return

        analysis = result.value
        matcher = self.matcher_provider()
        faces = []
        for face in analysis.faces:
            match = matcher.match(face.descriptor) if matcher is not None else MatchResult(None, float("inf"))
            faces.append(DetectedFace(box=face.box, match_label=match.label, match_distance=match.distance))

        self._draw_orders = self.tracker.update(faces)
        self._objects = self.class_filter.filter(analysis.objects) if self.class_filter is not None else []

    def _reset(self):
        self.tracker.reset()
        self._generation += 1
        self._reset_pending = False
        self._draw_orders = []
        self._objects = []
        self._frame_shape = None
        self.display.clear()
