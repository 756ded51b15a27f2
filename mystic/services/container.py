# mystic/services/container.py
from __future__ import annotations

from dataclasses import dataclass

from mystic.services.inventory import InventoryService
from mystic.services.orbs import OrbEconomyConfig, OrbsService
from mystic.services.progression import ProgressionService
from mystic.services.rituals import RitualService
from mystic.services.vision import VisionService
from mystic.services.wheel import WheelService


@dataclass(frozen=True, slots=True)
class Services:
    orbs: OrbsService
    inventory: InventoryService
    progression: ProgressionService
    wheel: WheelService
    vision: VisionService
    rituals: RitualService


def build_services(orb_config: OrbEconomyConfig | None = None) -> Services:
    orbs = OrbsService(orb_config)
    inventory = InventoryService()
    progression = ProgressionService(inventory)
    wheel = WheelService(orbs=orbs, experience=progression, inventory=inventory)
    return Services(
        orbs=orbs,
        inventory=inventory,
        progression=progression,
        wheel=wheel,
        vision=VisionService(orbs, wheel),
        rituals=RitualService(orbs, progression),
    )
