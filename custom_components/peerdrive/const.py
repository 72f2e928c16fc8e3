DOMAIN = "peerdrive"
VERSION = "0.1.0"

# Config entry keys
CONF_ENTRY_NAME = "entry_name"
CONF_VEHICLE_ID = "vehicle_id"
CONF_VEHICLE_TYPE = "vehicle_type"
CONF_RELAY_URL = "relay_url"
CONF_SOURCE_ENTITY = "source_entity"

DEFAULT_RELAY_URL = "192.168.4.1"

VEHICLE_TYPE_NAMES = {0: "car", 1: "bike", 2: "truck", 3: "bus"}

# --- Hazard thresholds ------------------------------------------------------
SPEED_THRESHOLD_KMH = 30.0          # peer speed that counts as "fast" on mountain roads
CLOSE_DISTANCE_M = 100.0            # priority 1: very close fast vehicles
WARN_DISTANCE_M = 150.0             # priority 2: closing vehicles
APPROACH_RELATIVE_SPEED_KMH = -20.0  # peer speed minus own speed below this = closing fast
OPPOSING_TRAFFIC_DISTANCE_M = 100.0
COLLISION_HORIZON_S = 5.0

# Alert cooldowns (milliseconds)
PEER_ALERT_COOLDOWN_MS = 5000       # per peer, per priority tier
HAZARD_ALERT_COOLDOWN_MS = 5000     # global, shared by bend and collision alerts

# --- Peer lifecycle (milliseconds since the last report) -------------------
FADE_START_MS = 5000
REMOVE_MS = 10000

# --- Self tracking ----------------------------------------------------------
SELF_HISTORY_SIZE = 100
SPEED_HISTORY_SIZE = 5
MIN_SAMPLE_INTERVAL_S = 0.1
MAX_SAMPLE_INTERVAL_S = 5.0
GPS_JUMP_DISTANCE_M = 50.0
GPS_JUMP_WINDOW_S = 2.0
MAX_SPEED_CHANGE_KMH_PER_S = 10.8   # ~3 m/s² acceleration or braking
REFERENCE_ACCURACY_M = 5.0
STATIONARY_SPEED_KMH = 3.0          # heading is unreliable below this
MIN_HEADING_DISPLACEMENT_M = 3.0

# --- Peer motion model ------------------------------------------------------
PEER_MAX_ACCELERATION_MS2 = 2.0
PEER_HEADING_SLEW_PER_S = 3.0
PEER_CATCHUP_PER_S = 2.0
PEER_SETTLE_DISTANCE_M = 0.5

# Empty relay payload handling
EMPTY_PAYLOAD_CLEAR = "clear"
EMPTY_PAYLOAD_KEEP = "keep"
EMPTY_PAYLOAD_POLICY = EMPTY_PAYLOAD_CLEAR

# --- Update intervals -------------------------------------------------------
TICK_INTERVAL_MS = 50     # extrapolation + hazard detection cadence
MIN_TICK_INTERVAL_MS = 50
SEND_INTERVAL = 1         # seconds between outbound telemetry posts
RECEIVE_INTERVAL = 2      # seconds between relay polls

RECENT_ALERTS_SIZE = 20

EVENT_ALERT = f"{DOMAIN}_alert"

HAZARD_NAMES = {
    "fast_behind": "Fast Vehicle Behind",
    "fast_oncoming": "Fast Oncoming Vehicle",
    "approach_fast": "Fast Approaching Vehicle",
    "hairpin_bend": "Hairpin Bend",
    "sharp_bend": "Sharp Bend",
    "collision_risk": "Collision Risk",
}

# --- Relay HTTP -------------------------------------------------------------
RELAY_SEND_PATH = "/send"
RELAY_RECEIVE_PATH = "/receive"
REQUEST_TIMEOUT = 2       # seconds, multiplied by attempt number for each retry
REQUEST_ATTEMPTS = 2      # maximum number of attempts per relay call
AVAILABILITY_TIMEOUT = 5  # seconds for the setup-time reachability check
