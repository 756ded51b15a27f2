import pytest

from mystic.config.settings import Settings

BASE_ENV = {"BOT_TOKEN": "123:abc", "BOT_USERNAME": "mystic_bot"}


def test_defaults():
    s = Settings.from_env(BASE_ENV)

    assert s.database_url == "sqlite+aiosqlite:///./mystic.db"
    assert s.root_admin_ids == ()
    assert not s.is_dev
    assert s.spin_attempt_ttl_days == 7

    econ = s.orb_economy()
    assert (econ.free_max, econ.regen_interval_sec, econ.pro_max) == (6, 3600, 9999)


@pytest.mark.parametrize("missing", ["BOT_TOKEN", "BOT_USERNAME"])
def test_required_values(missing):
    env = {k: v for k, v in BASE_ENV.items() if k != missing}

    with pytest.raises(RuntimeError, match=missing):
        Settings.from_env(env)


def test_overrides():
    s = Settings.from_env({
        **BASE_ENV,
        "ROOT_ADMIN_IDS": "[951258732, 123]",
        "ENVIRONMENT": "development",
        "ORBS_FREE_MAX": "10",
        "ORBS_FREE_REGEN_PER_HOUR": "0.5",
        "ORBS_REGEN_INTERVAL_SEC": "60",
    })

    assert s.root_admin_ids == (951258732, 123)
    assert s.is_dev
    econ = s.orb_economy()
    assert econ.free_max == 10
    assert econ.free_regen_per_hour == 0.5
    assert econ.regen_interval_sec == 60


def test_invalid_integer():
    with pytest.raises(RuntimeError, match="ORBS_FREE_MAX"):
        Settings.from_env({**BASE_ENV, "ORBS_FREE_MAX": "six"})


def test_zero_interval_is_rejected():
    s = Settings.from_env({**BASE_ENV, "ORBS_REGEN_INTERVAL_SEC": "0"})

    with pytest.raises(ValueError):
        s.orb_economy()
