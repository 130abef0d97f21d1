"""Internal constants shared across the package."""

DEFAULT_HOST = "localhost"
DEFAULT_PORT = 5000
DEFAULT_APP_NAME = "FsConnectApp"

# Fixed delay between connection attempts; no exponential growth.
DEFAULT_RETRY_INTERVAL = 5.0

# Correlation id of the standing plane-info subscription.
PLANE_INFO_REQUEST = 0

# SimConnect object id of the user-controlled aircraft.
USER_OBJECT_ID = 0

# Fixed length of the TITLE string in the data definition.
TITLE_MAX_LENGTH = 256

TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S"
