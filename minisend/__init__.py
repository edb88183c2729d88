"""minisend package for minitel-sender."""

from .state import RunState, TransmissionConfig
from .supervisor import ReconnectSupervisor

__all__ = ["RunState", "TransmissionConfig", "ReconnectSupervisor"]
