"""Database connectivity states (numeric codes match the driver-style readyState)."""

import enum


class ConnectivityState(enum.IntEnum):
    DISCONNECTED = 0
    CONNECTED = 1
    CONNECTING = 2
    DISCONNECTING = 3
