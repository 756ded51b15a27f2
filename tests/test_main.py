from mystic.config.settings import Settings
from mystic.main import build_dispatcher


async def test_dispatcher_carries_app_dependencies(db, services):
    settings = Settings(bot_token="42:TEST", bot_username="mystic_bot")

    dp = build_dispatcher(settings, db, services)

    assert dp.workflow_data["services"] is services
    assert dp.workflow_data["db"] is db
    assert dp.workflow_data["settings"] is settings
    assert dp.sub_routers
