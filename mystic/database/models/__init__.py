from .user import User
from .orbs import OrbsRecord
from .wheel import WheelLedger, SpinAttempt
from .inventory import Inventory
from .ritual_log import RitualLog
from .features import FeaturesConfig

__all__ = [
    "User",
    "OrbsRecord",
    "WheelLedger",
    "SpinAttempt",
    "Inventory",
    "RitualLog",
    "FeaturesConfig",
]
