"""Constants for the Melview HVAC client.

This module contains the API endpoints, protocol constants and defaults
used throughout the client.
"""

DEFAULT_URL = "https://api.melview.net/api"
APP_VERSION = "3.0.503"

ENDPOINT_LOGIN = "login.aspx"
ENDPOINT_CAPABILITIES = "unitcapabilities.aspx"
ENDPOINT_COMMAND = "unitcommand.aspx"
LOCAL_COMMAND_PATH = "smart"

# Version of the unitcommand.aspx response format
COMMAND_API_VERSION = 2

DEFAULT_MIN_REFRESH = 60  # Seconds a fetched state is served from cache
DEFAULT_TIMEOUT = 5.0
DEFAULT_TMP_DIR = "/tmp"  # noqa: S108
STATE_FILE_NAME = "melview_state.json"

# Bump when the layout of the persisted blob changes
STORAGE_VERSION = 2

API_STATUS_OK = "ok"
AUTH_API_ERRORS = ("login", "auth", "notloggedin")

COMMAND_SEPARATOR = ","

LOCAL_COMMAND_TEMPLATE = (
    '<?xml version="1.0" encoding="UTF-8"?>'
    "<CSV><CONNECT>ON</CONNECT><CODE><VALUE>{code}</VALUE></CODE></CSV>"
)
