# RegistrationDialog.py
# Modal dialog for registering a person from an image file

import tkinter as tk
from tkinter import filedialog
from PIL import Image, ImageTk
import cv2
import numpy as np
from typing import Optional

from registration import validate_fields
from errors import MissingRegistrationField


class RegistrationDialog(tk.Toplevel):
    """
    Modal dialog for registering a new person.

    Displays:
    - Image picker with a thumbnail of the chosen photo
    - Text inputs for Name and Relationship
    - Buttons: Register, Cancel

    Result is a dict with name, relationship and the BGR image, or None if
    cancelled.
    """

    def __init__(self, parent):
        super().__init__(parent)
        self.title("Register Person")
        self.result = None
        self.image_bgr: Optional[np.ndarray] = None

        self.transient(parent)
        self.grab_set()
        self.resizable(False, False)

        main_frame = tk.Frame(self, padx=15, pady=15)
        main_frame.pack(fill=tk.BOTH, expand=True)

        self.thumbnail_label = tk.Label(main_frame)
        self.thumbnail_label.pack(pady=(0, 5))
        self._set_thumbnail(None)

        tk.Button(main_frame, text="Choose Image...", command=self._on_choose_image).pack(pady=(0, 10))

        name_frame = tk.Frame(main_frame)
        name_frame.pack(fill=tk.X, pady=5)
        tk.Label(name_frame, text="Name:", width=12, anchor="w").pack(side=tk.LEFT)
        self.name_var = tk.StringVar()
        self.name_entry = tk.Entry(name_frame, width=25, textvariable=self.name_var)
        self.name_entry.pack(side=tk.LEFT)

        rel_frame = tk.Frame(main_frame)
        rel_frame.pack(fill=tk.X, pady=5)
        tk.Label(rel_frame, text="Relationship:", width=12, anchor="w").pack(side=tk.LEFT)
        self.relationship_var = tk.StringVar()
        tk.Entry(rel_frame, width=25, textvariable=self.relationship_var).pack(side=tk.LEFT)

        self.validation_label = tk.Label(main_frame, text="", fg="red", height=1)
        self.validation_label.pack(fill=tk.X, pady=5)

        btn_frame = tk.Frame(main_frame)
        btn_frame.pack(fill=tk.X, pady=(10, 0))
        tk.Button(btn_frame, text="Register", command=self._on_register, width=8).pack(side=tk.RIGHT, padx=(5, 0))
        tk.Button(btn_frame, text="Cancel", command=self._on_cancel, width=8).pack(side=tk.RIGHT)

        self.protocol("WM_DELETE_WINDOW", self._on_cancel)
        self.bind("<Return>", lambda e: self._on_register())
        self.bind("<Escape>", lambda e: self._on_cancel())
        self.name_entry.focus_set()

        # Center over parent
        self.update_idletasks()
        if parent is not None:
            x = parent.winfo_rootx() + parent.winfo_width() // 2 - self.winfo_width() // 2
            y = parent.winfo_rooty() + parent.winfo_height() // 2 - self.winfo_height() // 2
            self.geometry(f"+{x}+{y}")

    def _on_choose_image(self):
        path = filedialog.askopenfilename(
            parent=self,
            title="Choose a photo",
            filetypes=[("Images", "*.jpg *.jpeg *.png *.bmp"), ("All files", "*.*")],
        )
        if not path:
            return
        img = cv2.imread(path)
        if img is None:
            self.validation_label.configure(text="Could not read that image")
            return
        self.image_bgr = img
        self.validation_label.configure(text="")
        self._set_thumbnail(img)

    def _set_thumbnail(self, image_bgr: Optional[np.ndarray]):
        if image_bgr is None or image_bgr.size == 0:
            self.thumbnail_label.configure(
                image="",
                text="No image\nselected",
                width=15,
                height=5,
                bg="#e0e0e0"
            )
            return

        thumbnail_rgb = cv2.cvtColor(image_bgr, cv2.COLOR_BGR2RGB)
        h, w = thumbnail_rgb.shape[:2]
        max_size = 150
        scale = min(max_size / w, max_size / h, 1.0)
        if scale < 1.0:
            thumbnail_rgb = cv2.resize(
                thumbnail_rgb,
                (int(w * scale), int(h * scale)),
                interpolation=cv2.INTER_AREA
            )

        self.photo_image = ImageTk.PhotoImage(image=Image.fromarray(thumbnail_rgb))
        self.thumbnail_label.configure(image=self.photo_image, text="", width=0, height=0)

    def _on_register(self):
        try:
            label = validate_fields(self.name_var.get(), self.relationship_var.get(), self.image_bgr)
        except MissingRegistrationField as e:
            self.validation_label.configure(text=str(e))
            return

        self.result = {
            "name": label.name,
            "relationship": label.relationship,
            "image": self.image_bgr,
        }
        self.destroy()

    def _on_cancel(self):
        self.result = None
        self.destroy()
