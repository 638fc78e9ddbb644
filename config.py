# config.py
# Configuration constants for the perception overlay.

# Recognition thresholds
FACE_MATCH_THRESHOLD = 0.55  # lower = stricter

# Detection settings
DETECT_SCALE = 0.5
FACE_UPSAMPLE = 1
FACE_MODEL = "hog"

OBJECT_MODEL = "yolov8n.pt"
OBJECT_SCORE_THRESHOLD = 0.5
DEFAULT_ALLOWED_CLASSES = ["person", "cell phone", "cup", "book"]

# Tracking settings
# Frames a recognized face may stay "unknown" before its label is dropped
STABILIZATION_FRAMES = 8
# Max pixel distance between box centers to be considered the same face
BOX_PROXIMITY_THRESHOLD = 50.0
# 0-1, lower = smoother but slower
LABEL_SMOOTHING_FACTOR = 0.3

# Render loop
TICK_INTERVAL_MS = 100
CAMERA_WIDTH = 640
CAMERA_HEIGHT = 480

# Label styling
TEXT_PADDING = 8
TEXT_MARGIN = 15
OBJECT_LABEL_GAP = 6
FONT_SCALE = 0.55
FONT_THICKNESS = 1
BACKGROUND_RADIUS = 6
BACKGROUND_COLOR = (0, 0, 0)  # BGR
BACKGROUND_OPACITY = 0.55
FONT_COLOR = (255, 255, 255)
OBJECT_BOX_COLOR = (255, 200, 0)

# Persistence
REGISTRY_FILE = "registered/faces.json"
CLASS_FILTER_FILE = "registered/classes.json"
