# server/config/settings.py
"""Game configuration constants and settings."""

import os

# Canvas settings
CANVAS_WIDTH = 800
CANVAS_HEIGHT = 800
CENTER_X = CANVAS_WIDTH / 2
CENTER_Y = CANVAS_HEIGHT / 2

# Polygon settings
POLYGON_RADIUS = 300
START_SIDES = 4
ROTATION_ACCELERATION = 0.001
ROTATION_DAMPING = 0.92
MAX_ROTATION_SPEED = 0.1

# Ball settings
BALL_RADIUS = 15
SPAWN_OFFSET_Y = -100  # spawn above the center
TRAIL_LENGTH = 20
BALL_COLORS = [
    "#ff00ff",
    "#00ff00",
    "#ffff00",
    "#00ffff",
    "#ff6600",
    "#ff0066",
    "#6600ff",
]

# Physics settings
GRAVITY = 0.3
BOUNCE_DAMPING = 0.95
BOUNCE_SPEED_MULTIPLIER = 1.5
BOUNCE_JITTER = 0.1  # full width of the uniform jitter, in radians
MAX_BALL_SPEED = 15
CONTACT_OFFSET = 1
ESCAPE_MARGIN = 5
ESCAPE_DAMPING = 0.5
COLLISION_DEBOUNCE = 0.05  # seconds

# Level settings
START_LEVEL = 1
MAX_LEVEL = 20
START_LIVES = 3
EDGE_SCORE = 10  # multiplied by current level
LEVEL_BONUS = 100  # multiplied by the new level

# Hazard settings
EXPLOSIVE_FRACTION = 0.25
EXPLOSIVE_CHANGE_INTERVAL = 180  # ticks
WARNING_START = 120  # ticks, one second before the change at 60 FPS

# Particle settings
IMPACT_PARTICLES = 20
IMPACT_COLORS = ["#ffff00", "#ff8800", "#ffffff"]
EXPLOSION_PARTICLES = 50
EXPLOSION_COLORS = ["#ff0000", "#ff6600", "#ffaa00", "#ffffff"]
TRAIL_PARTICLE_CHANCE = 0.3
EXPLOSIVE_EDGE_PARTICLE_CHANCE = 0.3
WARNING_EDGE_PARTICLE_CHANCE = 0.2

# Sound cues: (frequency in Hz, duration in seconds)
BOUNCE_SOUND = (440, 0.2)
BOUNCE_SOUND_SPREAD = 200
BOUNCE_SOFT_SOUND = (300, 0.15)
EXPLOSION_SOUND = (400, 0.8)
LEVEL_COMPLETE_SOUND = (600, 0.5)

# Per-level colour themes, cycled by level
LEVEL_COLORS = [
    {"bg": "#001122", "polygon": "#00ffff", "ball": "#ff00ff", "explosive": "#ff0000"},
    {"bg": "#110022", "polygon": "#ff00ff", "ball": "#00ff00", "explosive": "#ff0000"},
    {"bg": "#002211", "polygon": "#00ff00", "ball": "#ffff00", "explosive": "#ff0000"},
    {"bg": "#221100", "polygon": "#ff8800", "ball": "#00ffff", "explosive": "#ff0000"},
    {"bg": "#220011", "polygon": "#ffff00", "ball": "#00ff00", "explosive": "#ff0000"},
    {"bg": "#112200", "polygon": "#ff0066", "ball": "#ffff00", "explosive": "#ff0000"},
    {"bg": "#001221", "polygon": "#00ff00", "ball": "#ff8800", "explosive": "#ff0000"},
    {"bg": "#210012", "polygon": "#ff00ff", "ball": "#00ffff", "explosive": "#ff0000"},
    {"bg": "#122100", "polygon": "#ffff00", "ball": "#ff0066", "explosive": "#ff0000"},
    {"bg": "#012210", "polygon": "#00ffff", "ball": "#ff00ff", "explosive": "#ff0000"},
    {"bg": "#102201", "polygon": "#ff8800", "ball": "#00ff00", "explosive": "#ff0000"},
    {"bg": "#220110", "polygon": "#ff0066", "ball": "#ffff00", "explosive": "#ff0000"},
    {"bg": "#011220", "polygon": "#00ff00", "ball": "#ff00ff", "explosive": "#ff0000"},
    {"bg": "#201122", "polygon": "#ff00ff", "ball": "#00ffff", "explosive": "#ff0000"},
    {"bg": "#120211", "polygon": "#ffff00", "ball": "#ff8800", "explosive": "#ff0000"},
    {"bg": "#021120", "polygon": "#00ffff", "ball": "#ff0066", "explosive": "#ff0000"},
    {"bg": "#211021", "polygon": "#ff8800", "ball": "#00ff00", "explosive": "#ff0000"},
    {"bg": "#112021", "polygon": "#ff0066", "ball": "#ff00ff", "explosive": "#ff0000"},
    {"bg": "#021211", "polygon": "#00ff00", "ball": "#ffff00", "explosive": "#ff0000"},
    {"bg": "#121102", "polygon": "#ff00ff", "ball": "#00ffff", "explosive": "#ff0000"},
]
CLEARED_EDGE_COLOR = "#666666"

# Leaderboard settings
LEADERBOARD_MAX_ENTRIES = 100
LEADERBOARD_TOP = 20
LEADERBOARD_CACHE_TTL = 60  # seconds
JSONBIN_BASE_URL = "https://api.jsonbin.io/v3"
JSONBIN_BIN_ID = os.environ.get("JSONBIN_BIN_ID", "")
JSONBIN_API_KEY = os.environ.get("JSONBIN_API_KEY", "")
JSONBIN_TIMEOUT = 10.0  # seconds

# Server settings
UPDATE_RATE = 60  # simulation ticks per second
DEBUG = os.environ.get("POLYBOUNCE_DEBUG", "").lower() in ("1", "true", "yes")


def is_jsonbin_configured():
    """Whether the remote JSONBin store has credentials to work with."""
    return bool(JSONBIN_BIN_ID and JSONBIN_API_KEY)


def get_game_config():
    """Get the client-facing game configuration as a dictionary."""
    return {
        "canvasWidth": CANVAS_WIDTH,
        "canvasHeight": CANVAS_HEIGHT,
        "polygonRadius": POLYGON_RADIUS,
        "ballRadius": BALL_RADIUS,
        "trailLength": TRAIL_LENGTH,
        "startSides": START_SIDES,
        "startLives": START_LIVES,
        "maxLevel": MAX_LEVEL,
        "explosiveChangeInterval": EXPLOSIVE_CHANGE_INTERVAL,
        "warningStart": WARNING_START,
        "clearedEdgeColor": CLEARED_EDGE_COLOR,
        "levelColors": LEVEL_COLORS,
        "updateRate": UPDATE_RATE,
    }
