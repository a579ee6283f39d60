"""
Configuration & Path Management
===============================
This module serves as the central registry for file paths and global constants.

Why is this file needed?
------------------------
1. Abstraction: Canvas bounds, calibration defaults and backend settings live
   in one place instead of being scattered through the widgets.
2. Environment: The REST backend URL, token and local data file can be
   overridden with environment variables.

Exports:
    DRAWER_MAX_BOX (tuple[int, int]): Max stage size of the plot drawer.
    CALIBRATION_MAX_BOX (tuple[int, int]): Max stage size of the calibration wizard.
    API_BASE_URL (str): Root URL of the REST backend.
    DATA_PATH (str): Absolute path of the local HDF5 store.
"""
import os
from pathlib import Path

# Canvas bounds (display pixels)
DRAWER_MAX_BOX: tuple[int, int] = (1000, 700)
CALIBRATION_MAX_BOX: tuple[int, int] = (700, 450)
FALLBACK_CANVAS_SIZE: tuple[int, int] = (600, 400)

# Placeholder scale of an uncalibrated venture: 100 px = 10 units
DEFAULT_REFERENCE_PIXELS: float = 100.0
DEFAULT_REFERENCE_UNITS: float = 10.0
DEFAULT_UNIT: str = "sqyd"

MIN_POLYGON_VERTICES: int = 3
MAX_SCALE_POINTS: int = 2
# Display -> image -> display must reproduce a point within this distance
ROUND_TRIP_TOLERANCE: float = 1e-6

# Persistence
API_BASE_URL: str = os.environ.get("PLOTDIGITIZER_API_URL", "http://localhost:5000")
API_TOKEN: str | None = os.environ.get("PLOTDIGITIZER_API_TOKEN")
REQUEST_TIMEOUT: float = 30.0

DATA_PATH: str = os.environ.get(
    "PLOTDIGITIZER_DATA",
    os.path.join(str(Path.home()), ".plotdigitizer", "ventures.h5")
)
