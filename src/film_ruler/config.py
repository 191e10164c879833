# Edge map
GAUSS_BLUR_KSIZE = 3
CANNY_LOW = 30
CANNY_HIGH = 90
CANNY_USE_L2 = True
# Canny thresholds are scaled by this factor when the L2 gradient is used so the
# edge map keeps the same visual sensitivity as the L1 variant.
CANNY_L2_SCALE = 0.7

# Dense window (px)
DENSE_WINDOW_HEIGHT = 80
DENSE_WINDOW_WIDTH = 80

# Tick profile
PROFILE_SMOOTH_SIGMA = 1.2
PROFILE_SMOOTH_RADIUS = 4
MIN_TICK_SPACING = 2
MAX_TICK_SPACING = 40
DEFAULT_TICK_STEP = 5
NMS_SEP_FACTOR = 0.8

# Tick repair
TICK_GAP_LOW_FACTOR = 0.60
TICK_GAP_HIGH_FACTOR = 1.60
MAX_MISSING_PER_GAP = 5
DEFAULT_BASE_SPACING = 5

# RANSAC line fitting
RANSAC_ITERS = 600
RANSAC_EPS_PX = 2.0
RANSAC_THETA0_DEG = 12.0
MIN_EDGE_POINTS = 20
PARALLEL_DET_EPS = 1e-9

# Film target (physical parameters)
PIXELS_PER_MM = 16
TARGET_WIDTH_MM = 323
TARGET_HEIGHT_MM = 75
ROI_OFFSET_X_PX = 5
ROI_OFFSET_Y_BASE_PX = 5
ROI_OFFSET_Y_MM = 45
ROI_WIDTH_MM = 8
ROI_HEIGHT_MM = 30
SHIFT_DISTANCE_MM = 312
NOMINAL_TICK_PITCH_MM = 1.0

# Draw colors (BGR) and thicknesses
COLOR_RECT_H = (0, 0, 255)
COLOR_RECT_V = (0, 255, 0)
COLOR_TICK = (0, 255, 255)
COLOR_INTERSECTION = (0, 255, 128)
COLOR_LINE_H = (255, 255, 0)
COLOR_LINE_V = (255, 0, 255)
TICK_THICKNESS = 1
RECT_THICKNESS = 1
ROI_RECT_THICKNESS = 2
LINE_THICKNESS = 1
INTERSECTION_RADIUS = 2

# Output naming
EDGE_SUFFIX = "_edge"
OVERLAY_SUFFIX = "_overlay"
OUTPUT_EXTENSION = ".png"

# Concurrency
DEFAULT_MAX_CONCURRENCY = 4
