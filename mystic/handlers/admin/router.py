# mystic/handlers/admin/router.py
from aiogram import Router

from mystic.handlers.admin.features import router as features_router
from mystic.handlers.admin.pro import router as pro_router

router = Router(name="admin")

router.include_router(pro_router)
router.include_router(features_router)
