import os
import sys

# Top-level folders holding user data rather than bundled resources
PERSISTENT_DIRS = ("registered", "images")


def get_executable_dir() -> str:
    """Directory of the running executable, or the working directory for scripts."""
    if getattr(sys, 'frozen', False):
        return os.path.dirname(sys.executable)
    return os.path.abspath(".")


def resource_path(relative_path: str) -> str:
    """Absolute path for a bundled resource or a piece of user data.

    User data (registrations, class filter, bootstrap images) lives next to
    the executable so it survives rebuilds; model files and other bundled
    resources come from the PyInstaller temp dir when frozen.
    """
    if os.path.isabs(relative_path):
        return relative_path

    first = relative_path.replace("\\", "/").split("/", 1)[0].lower()
    if first in PERSISTENT_DIRS:
        base_path = get_executable_dir()
    else:
        base_path = getattr(sys, "_MEIPASS", os.path.abspath("."))
    return os.path.join(base_path, relative_path)
