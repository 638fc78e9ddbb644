# main.py
import logging
import tkinter as tk

from perception_app import PerceptionApp


def main():
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    root = tk.Tk()
    app = PerceptionApp(root, camera_index=0)
    root.mainloop()


if __name__ == "__main__":
    main()
