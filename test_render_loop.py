# test_render_loop.py
"""Drives FrameRenderLoop tick by tick with a virtual clock and fake collaborators."""

import unittest

import numpy as np

from detection_worker import InlineWorker, run_job
from detectors import FaceObservation, FrameAnalysis, ObjectDetection
from errors import ModelUnavailable
from face_matcher import FaceMatcher, PersonLabel
from geometry import Point, Rect
from render_loop import FrameRenderLoop, LoopState
from scheduler import ManualScheduler

ALICE = PersonLabel("Alice", "Sister")
ALICE_DESC = np.full(128, 0.2, dtype="float32")
STRANGER_DESC = np.full(128, 0.9, dtype="float32")

TICK = 100


class FakeModels:
    def __init__(self, load_error=None):
        self.load_error = load_error
        self.script = []  # FrameAnalysis or Exception per call, last one repeats
        self.calls = 0

    def load(self):
        if self.load_error:
            raise self.load_error

    def analyze(self, frame):
        self.calls += 1
        item = self.script[min(self.calls, len(self.script)) - 1] if self.script else FrameAnalysis()
        if isinstance(item, Exception):
            raise item
        return item


class FakeFrameSource:
    def __init__(self, shape=(240, 320, 3)):
        self.shape = shape
        self.size = None
        self.released = False

    def open(self):
        self.size = (self.shape[1], self.shape[0])
        return True

    def read(self):
        return True, np.zeros(self.shape, dtype=np.uint8)

    def release(self):
        self.released = True


class FakeDisplay:
    def __init__(self):
        self.shown = []
        self.clears = 0

    def show(self, frame):
        self.shown.append(frame)

    def clear(self):
        self.clears += 1


class DeferredWorker(InlineWorker):
    """Holds jobs until complete() is called, like a slow model."""

    def __init__(self):
        super().__init__()
        self.pending = []
        self.stopped = False

    def submit(self, job):
        self.pending.append(job)
        return True

    def complete(self):
        while self.pending:
            self._results.append(run_job(self.pending.pop(0)))

    def stop(self):
        self.stopped = True


def alice_at(x, y=100):
    return FaceObservation(box=Rect(x, y, 80, 80), descriptor=ALICE_DESC)


class LoopTestCase(unittest.TestCase):
    def make_loop(self, worker=None, models=None, **kwargs):
        self.scheduler = ManualScheduler()
        self.worker = worker or InlineWorker()
        self.models = models or FakeModels()
        self.source = FakeFrameSource()
        self.display = FakeDisplay()
        self.states = []
        self.matcher = FaceMatcher([(ALICE, ALICE_DESC)])
        self.loop = FrameRenderLoop(
            scheduler=self.scheduler,
            worker=self.worker,
            models=self.models,
            frame_source=self.source,
            display=self.display,
            matcher_provider=lambda: self.matcher,
            interval_ms=TICK,
            on_state_change=lambda state, msg: self.states.append((state, msg)),
            **kwargs,
        )
        return self.loop

    def run_ticks(self, n=1):
        self.scheduler.advance(TICK * n)


class TestLifecycle(LoopTestCase):
    def test_idle_to_running(self):
        loop = self.make_loop()
        self.assertEqual(loop.state, LoopState.IDLE)
        loop.start()
        self.assertEqual(loop.state, LoopState.LOADING)

        self.run_ticks()
        self.assertEqual(loop.state, LoopState.RUNNING)
        self.assertEqual(
            [s for s, _ in self.states],
            [LoopState.LOADING, LoopState.READY, LoopState.RUNNING],
        )

        self.run_ticks(3)
        self.assertEqual(len(self.display.shown), 3)
        self.assertEqual(self.models.calls, 3)

    def test_ready_waits_for_stream_dimensions(self):
        loop = self.make_loop()
        self.source.open = lambda: False
        loop.start()
        self.run_ticks(3)
        self.assertEqual(loop.state, LoopState.READY)

        del self.source.open  # back to the class method
        self.run_ticks()
        self.assertEqual(loop.state, LoopState.RUNNING)

    def test_load_failure_reports_and_stops_ticking(self):
        loop = self.make_loop(models=FakeModels(load_error=ModelUnavailable("no weights")))
        loop.start()
        self.run_ticks()
        self.assertEqual(loop.state, LoopState.LOADING)
        self.assertTrue(any(msg and "no weights" in msg for _, msg in self.states))
        self.assertEqual(self.scheduler.pending, 0)

    def test_stop_releases_everything(self):
        loop = self.make_loop()
        loop.start()
        self.run_ticks(2)
        loop.stop()
        self.assertEqual(loop.state, LoopState.STOPPED)
        self.assertTrue(self.source.released)
        self.assertEqual(loop.tracker.tracked, {})
        shown = len(self.display.shown)
        self.run_ticks(5)
        self.assertEqual(len(self.display.shown), shown)


class TestTicks(LoopTestCase):
    def start_running(self, **kwargs):
        loop = self.make_loop(**kwargs)
        loop.start()
        self.run_ticks()
        self.assertEqual(loop.state, LoopState.RUNNING)
        return loop

    def test_recognized_face_is_tracked(self):
        loop = self.start_running()
        self.models.script = [FrameAnalysis(faces=[alice_at(100)])]
        self.run_ticks()
        tracked = list(loop.tracker.tracked.values())
        self.assertEqual(len(tracked), 1)
        self.assertEqual(tracked[0].label, ALICE)
        self.assertEqual(tracked[0].smoothed_anchor, Point(195, 140))

    def test_unregistered_face_is_not_drawn(self):
        loop = self.start_running()
        self.models.script = [FrameAnalysis(faces=[FaceObservation(Rect(100, 100, 80, 80), STRANGER_DESC)])]
        self.run_ticks()
        self.assertEqual(loop.tracker.tracked, {})

    def test_no_matcher_means_no_labels(self):
        loop = self.start_running()
        self.matcher = None
        self.models.script = [FrameAnalysis(faces=[alice_at(100)])]
        self.run_ticks()
        self.assertEqual(loop.tracker.tracked, {})

    def test_detection_failure_keeps_running(self):
        loop = self.start_running()
        self.models.script = [FrameAnalysis(faces=[alice_at(100)]), RuntimeError("backend lost"), FrameAnalysis(faces=[alice_at(100)])]
        self.run_ticks(3)
        self.assertEqual(loop.state, LoopState.RUNNING)
        self.assertEqual(len(self.display.shown), 3)
        self.assertEqual(len(loop.tracker.tracked), 1)
        self.assertGreater(self.scheduler.pending, 0)

    def test_objects_filtered_by_class(self):
        class OnlyCups:
            def filter(self, objects):
                return [o for o in objects if o.class_name == "cup"]

        loop = self.start_running(class_filter=OnlyCups())
        self.models.script = [FrameAnalysis(objects=[
            ObjectDetection(Rect(10, 50, 40, 40), "cup", 0.9),
            ObjectDetection(Rect(100, 50, 40, 40), "dog", 0.9),
        ])]
        self.run_ticks()
        self.assertEqual([o.class_name for o in loop._objects], ["cup"])

    def test_objects_hidden_without_filter(self):
        loop = self.start_running()
        self.models.script = [FrameAnalysis(objects=[ObjectDetection(Rect(10, 50, 40, 40), "cup", 0.9)])]
        self.run_ticks()
        self.assertEqual(loop._objects, [])

    def test_frame_size_change_resets_tracking(self):
        loop = self.start_running()
        self.models.script = [FrameAnalysis(faces=[alice_at(100)])]
        self.run_ticks()
        first_id = list(loop.tracker.tracked)[0]

        self.source.shape = (480, 640, 3)
        self.run_ticks()
        ids = list(loop.tracker.tracked)
        self.assertEqual(len(ids), 1)
        self.assertNotEqual(ids[0], first_id)
        self.assertEqual(loop.tracker.tracked[ids[0]].smoothed_anchor, Point(195, 140))


class TestOverlappingTicks(LoopTestCase):
    def start_running(self):
        loop = self.make_loop(worker=DeferredWorker())
        loop.start()
        self.worker.complete()  # model load
        self.run_ticks()
        self.assertEqual(loop.state, LoopState.RUNNING)
        return loop

    def test_only_one_detection_in_flight(self):
        loop = self.start_running()
        self.run_ticks()
        self.assertEqual(len(self.worker.pending), 1)
        self.assertTrue(loop.detection_in_flight)

        self.run_ticks(3)
        self.assertEqual(len(self.worker.pending), 1)
        self.assertEqual(loop.frames_dropped, 3)
        # frames keep being drawn while the model is busy
        self.assertEqual(len(self.display.shown), 4)

        self.worker.complete()
        self.run_ticks()
        self.assertEqual(len(self.worker.pending), 1)
        self.assertEqual(self.models.calls, 1)

    def test_result_from_before_reset_is_discarded(self):
        loop = self.start_running()
        self.models.script = [FrameAnalysis(faces=[alice_at(100)])]
        self.run_ticks()  # submitted, not finished

        loop.request_reset("resize")
        self.run_ticks()  # reset applied; old call still running, nothing new submitted
        self.assertEqual(len(self.worker.pending), 1)

        self.worker.complete()
        self.run_ticks()  # stale result dropped, next frame submitted
        self.assertEqual(loop.tracker.tracked, {})
        self.assertEqual(len(self.worker.pending), 1)

        self.worker.complete()
        self.run_ticks()
        self.assertEqual(len(loop.tracker.tracked), 1)

    def test_pause_discards_in_flight_result(self):
        loop = self.start_running()
        self.models.script = [FrameAnalysis(faces=[alice_at(100)])]
        self.run_ticks()
        loop.pause()
        self.worker.complete()
        loop.resume()
        self.run_ticks()
        self.assertEqual(loop.tracker.tracked, {})


class TestPauseResume(LoopTestCase):
    def test_pause_clears_and_resume_starts_fresh(self):
        loop = self.make_loop()
        loop.start()
        self.run_ticks()
        self.models.script = [FrameAnalysis(faces=[alice_at(100)]), FrameAnalysis(faces=[alice_at(130)])]
        self.run_ticks()
        self.assertEqual(len(loop.tracker.tracked), 1)

        clears = self.display.clears
        loop.pause()
        self.assertEqual(loop.state, LoopState.PAUSED)
        self.assertEqual(loop.tracker.tracked, {})
        self.assertEqual(self.display.clears, clears + 1)

        shown = len(self.display.shown)
        self.run_ticks(5)
        self.assertEqual(len(self.display.shown), shown)

        loop.resume()
        self.run_ticks()
        self.assertEqual(loop.state, LoopState.RUNNING)
        anchor = list(loop.tracker.tracked.values())[0].smoothed_anchor
        # first sighting after reset: no lag toward the new position
        self.assertEqual(anchor, Point(225, 140))


if __name__ == "__main__":
    unittest.main()
