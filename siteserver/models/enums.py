#  Site Server - Enums
#
#  Lifecycle phases and error categories used across the server.
#
#  Depends on: (none)
#  Used by:    exceptions.py, lifecycle.py, errors.py

from enum import Enum


class LifecyclePhase(str, Enum):
    STARTING = "starting"
    SERVING = "serving"
    SHUTTING_DOWN = "shutting_down"
    TERMINATED = "terminated"      # Terminal, no way back


class ErrorCategory(str, Enum):
    NOT_FOUND = "not_found"
    CLIENT = "client"              # Any other 4xx
    SERVER = "server"              # 5xx, or no code at all
