# perception_app.py
# Main application window for the perception overlay

import logging
import queue
import threading

import cv2
import numpy as np

import tkinter as tk
from tkinter import messagebox, simpledialog
from PIL import Image, ImageTk

from camera_utils import CameraSource, list_available_cameras
from class_filter import ClassFilterStore
from detection_worker import DetectionWorker
from detectors import ObjectDetector, PerceptionModels
from errors import RegistrationError
from identity_store import IdentityStore
from identity_tracker import IdentityTracker
from overlay_renderer import OverlayRenderer
from registration import register_face
from RegistrationDialog import RegistrationDialog
from render_loop import FrameRenderLoop, LoopState
from scheduler import TkScheduler
from config import CAMERA_HEIGHT, CAMERA_WIDTH

logger = logging.getLogger(__name__)

STATUS_COLORS = {"info": "black", "ok": "green", "warn": "orange", "error": "red"}


class TkDisplay:
    """Shows annotated frames in a tk.Label."""

    def __init__(self, label: tk.Label):
        self.label = label

    def show(self, frame_bgr: np.ndarray):
        frame_rgb = cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2RGB)
        imgtk = ImageTk.PhotoImage(image=Image.fromarray(frame_rgb))
        # Keep a reference to avoid garbage collection
        self.label.imgtk = imgtk
        self.label.configure(image=imgtk)

    def clear(self):
        blank = np.zeros((CAMERA_HEIGHT, CAMERA_WIDTH, 3), dtype=np.uint8)
        self.show(blank)


class PerceptionApp:
    def __init__(self, root, camera_index: int = 0):
        self.root = root
        self.root.title("Perception Overlay")

        # --- Core components ---
        self.store = IdentityStore()
        self.class_filter = ClassFilterStore()
        self.matcher = None

        self.models = PerceptionModels(object_detector=ObjectDetector())
        self.worker = DetectionWorker()
        self.worker.start()

        self.camera = CameraSource(camera_index)
        # Results of background registrations, drained on the UI thread
        self.ui_queue: queue.Queue = queue.Queue()

        # --- UI layout ---
        self.video_label = tk.Label(self.root, bg="black")
        self.video_label.pack(side=tk.LEFT, fill=tk.BOTH, expand=True)

        self.side_frame = tk.Frame(self.root, padx=8, pady=8)
        self.side_frame.pack(side=tk.RIGHT, fill=tk.Y)

        self.register_button = tk.Button(self.side_frame, text="Register Person...", command=self.open_registration)
        self.register_button.pack(fill=tk.X)

        tk.Label(self.side_frame, text="Registered people:", anchor="w").pack(fill=tk.X, pady=(10, 0))
        self.registered_list = tk.Listbox(self.side_frame, height=10, width=32)
        self.registered_list.pack(fill=tk.X)

        list_buttons = tk.Frame(self.side_frame)
        list_buttons.pack(fill=tk.X, pady=5)
        tk.Button(list_buttons, text="Delete", command=self.delete_selected).pack(side=tk.LEFT)
        tk.Button(list_buttons, text="Clear All", command=self.clear_all).pack(side=tk.RIGHT)

        tk.Label(self.side_frame, text="Watched objects (comma separated):", anchor="w").pack(fill=tk.X, pady=(10, 0))
        self.classes_var = tk.StringVar(value=", ".join(self.class_filter.list()))
        classes_entry = tk.Entry(self.side_frame, textvariable=self.classes_var, width=32)
        classes_entry.pack(fill=tk.X)
        classes_entry.bind("<Return>", lambda e: self.apply_classes())
        tk.Button(self.side_frame, text="Apply", command=self.apply_classes).pack(anchor="e", pady=5)

        controls = tk.Frame(self.side_frame)
        controls.pack(fill=tk.X, pady=(10, 0))
        self.pause_button = tk.Button(controls, text="Pause", command=self.toggle_pause, width=8)
        self.pause_button.pack(side=tk.LEFT)
        tk.Button(controls, text="Select Camera", command=self.change_camera).pack(side=tk.RIGHT)

        self.status_label = tk.Label(self.side_frame, text="", anchor="w", justify=tk.LEFT, wraplength=230)
        self.status_label.pack(fill=tk.X, pady=(10, 0))

        self.loop = FrameRenderLoop(
            scheduler=TkScheduler(self.root),
            worker=self.worker,
            models=self.models,
            frame_source=self.camera,
            display=TkDisplay(self.video_label),
            tracker=IdentityTracker(),
            renderer=OverlayRenderer(),
            matcher_provider=lambda: self.matcher,
            class_filter=self.class_filter,
            on_state_change=self._on_loop_state,
        )

        self.root.protocol("WM_DELETE_WINDOW", self.on_close)

        self.set_status("Loading models...")
        self.loop.start()
        self._drain_ui_queue()

    # ---------- Status ----------

    def set_status(self, text: str, level: str = "info"):
        self.status_label.configure(text=text, fg=STATUS_COLORS.get(level, "black"))

    def _on_loop_state(self, state: LoopState, message):
        if message and message.startswith("error"):
            self.set_status(f"{message}. Check the log for details.", "error")
        elif state == LoopState.READY:
            # Saved faces are loaded once the models are ready
            self.refresh_registrations()
            self.set_status("Models loaded. Starting camera...")
        elif state == LoopState.RUNNING:
            self.set_status("Running.", "ok")
        elif state == LoopState.PAUSED:
            self.set_status("Paused. Detection stopped.")

    # ---------- Registrations ----------

    def refresh_registrations(self):
        self.matcher = self.store.build_matcher()
        self.registered_list.delete(0, tk.END)
        entries = self.store.list()
        if not entries:
            self.registered_list.insert(tk.END, "No faces registered yet.")
        for entry in entries:
            self.registered_list.insert(tk.END, entry.label.display_text)
        # matches may change, tracked labels are stale
        self.loop.request_reset("registrations changed")

    def open_registration(self):
        if not self.models.face_detector.loaded:
            self.set_status("Models not loaded yet.", "error")
            return

        dialog = RegistrationDialog(self.root)
        self.root.wait_window(dialog)
        if dialog.result is None:
            return

        self.set_status("Detecting face...", "warn")
        self.register_button.configure(state=tk.DISABLED)
        result = dialog.result
        threading.Thread(target=self._register_in_background, args=(result,), daemon=True).start()

    def _register_in_background(self, result: dict):
        try:
            outcome = register_face(
                self.store,
                self.models.face_detector,
                result["name"],
                result["relationship"],
                result["image"],
            )
            self.ui_queue.put(("registered", outcome))
        except RegistrationError as e:
            self.ui_queue.put(("registration_failed", str(e)))
        except Exception as e:
            logger.exception("Registration error")
            self.ui_queue.put(("registration_failed", f"Registration failed: {e}"))

    def _drain_ui_queue(self):
        while True:
            try:
                kind, payload = self.ui_queue.get_nowait()
            except queue.Empty:
                break
            self.register_button.configure(state=tk.NORMAL)
            if kind == "registered":
                self.refresh_registrations()
                text = f"Registered {payload.entry.label.display_text} successfully!"
                if payload.duplicate_name:
                    self.set_status(text + f" Note: {payload.entry.label.name!r} was already registered.", "warn")
                else:
                    self.set_status(text, "ok")
            else:
                self.set_status(payload, "error")
        if self.loop.state != LoopState.STOPPED:
            self.root.after(100, self._drain_ui_queue)

    def delete_selected(self):
        selection = self.registered_list.curselection()
        if not selection or not len(self.store):
            return
        index = selection[0]
        entries = self.store.list()
        if index >= len(entries):
            return
        name = entries[index].label.name
        if not messagebox.askyesno("Delete", f"Are you sure you want to delete the registration for {name}?"):
            return
        if self.store.remove(index) is not None:
            self.refresh_registrations()
            self.set_status(f"Deleted {name}.", "ok")

    def clear_all(self):
        if not messagebox.askyesno(
            "Clear All", "Are you sure you want to delete ALL registered people? This cannot be undone."
        ):
            return
        self.store.clear()
        self.refresh_registrations()
        self.set_status("All registrations cleared.", "ok")

    # ---------- Objects ----------

    def apply_classes(self):
        self.class_filter.set(self.classes_var.get().split(","))
        self.classes_var.set(", ".join(self.class_filter.list()))
        self.set_status(f"Watching {len(self.class_filter.list())} object classes.", "ok")

    # ---------- Camera / lifecycle ----------

    def toggle_pause(self):
        if self.loop.state == LoopState.RUNNING:
            self.loop.pause()
            self.pause_button.configure(text="Resume")
        elif self.loop.state == LoopState.PAUSED:
            self.loop.resume()
            self.pause_button.configure(text="Pause")

    def change_camera(self):
        available = list_available_cameras(max_index=5)
        if not available:
            messagebox.showerror("No Cameras", "No available cameras were found.")
            return

        selected_idx = simpledialog.askinteger(
            "Select Camera",
            f"Available cameras: {', '.join(str(i) for i in available)}",
            parent=self.root,
            initialvalue=self.camera.index,
        )
        if selected_idx is None or selected_idx == self.camera.index:
            return
        if selected_idx not in available:
            messagebox.showerror("Camera Error", f"Camera index {selected_idx} is not available.")
            return

        if not self.camera.switch(selected_idx):
            messagebox.showerror("Camera Error", f"Could not open camera index {selected_idx}.")
        # box coordinates are resolution-relative
        self.loop.request_reset("camera changed")

    def on_close(self):
        self.loop.stop()
        self.worker.join(timeout=2)
        self.root.destroy()
