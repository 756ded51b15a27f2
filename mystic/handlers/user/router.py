# mystic/handlers/user/router.py
from aiogram import Router

from mystic.handlers.user.checkin import router as checkin_router
from mystic.handlers.user.orbs import router as orbs_router
from mystic.handlers.user.profile import router as profile_router
from mystic.handlers.user.rune import router as rune_router
from mystic.handlers.user.spin import router as spin_router
from mystic.handlers.user.watch import router as watch_router

router = Router(name="user")

router.include_router(orbs_router)
router.include_router(rune_router)
router.include_router(spin_router)
router.include_router(watch_router)
router.include_router(checkin_router)
router.include_router(profile_router)
