from common.common_helpers import resolve_clone_options
from common.config import Config


def test_defaults(monkeypatch):
    for key in (
        "BOT_TOKEN",
        "COMMAND_USERS",
        "DELETE_DELAY_SECONDS",
        "CREATE_DELAY_SECONDS",
        "EMOJI_DELAY_SECONDS",
        "DELETE_CHANNELS",
        "DELETE_ROLES",
        "DELETE_EMOJIS",
        "CLONE_CHANNELS",
        "CLONE_ROLES",
        "CLONE_EMOJIS",
        "UPDATE_INFO",
    ):
        monkeypatch.delenv(key, raising=False)

    config = Config()
    assert config.BOT_TOKEN is None
    assert config.COMMAND_USERS == []
    assert config.pacing_intervals() == {"delete": 5.0, "create": 5.0, "emoji": 10.0}
    assert config.default_clone_options() == {
        "DELETE_CHANNELS": True,
        "DELETE_ROLES": True,
        "DELETE_EMOJIS": True,
        "CLONE_CHANNELS": True,
        "CLONE_ROLES": True,
        "CLONE_EMOJIS": False,
        "UPDATE_INFO": False,
    }


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("COMMAND_USERS", "11, 22,abc,")
    monkeypatch.setenv("EMOJI_DELAY_SECONDS", "2.5")
    monkeypatch.setenv("CREATE_DELAY_SECONDS", "nope")
    monkeypatch.setenv("CLONE_EMOJIS", "yes")
    monkeypatch.setenv("DELETE_ROLES", "off")
    monkeypatch.setenv("UPDATE_INFO", "maybe")

    config = Config()
    assert config.COMMAND_USERS == [11, 22]
    assert config.EMOJI_DELAY_SECONDS == 2.5
    assert config.CREATE_DELAY_SECONDS == 5.0
    opts = config.default_clone_options()
    assert opts["CLONE_EMOJIS"] is True
    assert opts["DELETE_ROLES"] is False
    assert opts["UPDATE_INFO"] is False


def test_resolve_clone_options_precedence(monkeypatch):
    monkeypatch.setenv("CLONE_EMOJIS", "true")
    monkeypatch.delenv("DELETE_ROLES", raising=False)

    eff = resolve_clone_options(
        Config(),
        {"delete_roles": False, "clone_emojis": None, "not_an_option": True},
    )
    assert eff["DELETE_ROLES"] is False
    assert eff["CLONE_EMOJIS"] is True
    assert "NOT_AN_OPTION" not in eff
