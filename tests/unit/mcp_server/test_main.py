import pytest

from common.errors.exceptions import ConfigurationError
from mcp_server import main
from tests._support.fake_gateway import make_settings


def test_create_server_requires_configuration():
    with pytest.raises(ConfigurationError):
        main.create_server()


def test_create_server_builds_fastmcp(monkeypatch):
    registered = []
    monkeypatch.setattr(main, "register_all", lambda mcp, executor: registered.append(executor))

    server = main.create_server(make_settings())

    assert server.name == main.SERVER_NAME
    assert len(registered) == 1
    assert registered[0].settings.database == "shop"


def test_main_exits_on_configuration_error(monkeypatch):
    monkeypatch.setattr(main, "load_dotenv", lambda: None)
    monkeypatch.setattr(main, "setup_telemetry", lambda: None)

    with pytest.raises(SystemExit) as excinfo:
        main.main()

    assert excinfo.value.code == 2
