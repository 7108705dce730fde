import pytest

from domains_mcp.config import Config
from domains_mcp.errors import StartupFailure


def test_default_catalog_loads():
    config = Config()

    ids = [widget.id for widget in config.get_all_widgets()]
    assert ids == [
        "cheap-search-domains",
        "generic-search-domains",
        "list-all-products",
        "recommend-products",
    ]
    roles = {widget.id: widget.role for widget in config.get_all_widgets()}
    assert roles["cheap-search-domains"] == "cheap_domain_search"
    assert roles["recommend-products"] == "product_recommendation"
    assert roles["list-all-products"] == "product_listing"
    assert config.testing_mode is False


def test_default_product_tables_load():
    config = Config()

    assert set(config.products) == {"email", "website", "ssl-security"}
    assert all(len(items) == 3 for items in config.products.values())


def test_port_defaults_and_overrides(monkeypatch):
    config = Config()

    monkeypatch.delenv("PORT", raising=False)
    assert config.get_port() == 8000

    monkeypatch.setenv("PORT", "9100")
    assert config.get_port() == 9100

    monkeypatch.setenv("PORT", "not-a-port")
    assert config.get_port() == 8000


def test_request_timeout(monkeypatch):
    config = Config()

    monkeypatch.delenv("DOMAINS_SEARCH_TIMEOUT", raising=False)
    assert config.get_request_timeout() == 5.0

    monkeypatch.setenv("DOMAINS_SEARCH_TIMEOUT", "2.5")
    assert config.get_request_timeout() == 2.5

    monkeypatch.setenv("DOMAINS_SEARCH_TIMEOUT", "soon")
    assert config.get_request_timeout() == 5.0


def test_assets_dir_from_environment(monkeypatch, tmp_path):
    monkeypatch.setenv("DOMAINS_MCP_ASSETS_DIR", str(tmp_path))
    assert Config().get_assets_dir() == tmp_path


def test_missing_config_file_is_startup_failure(tmp_path):
    with pytest.raises(StartupFailure, match="widgets.yaml"):
        Config(tmp_path)


def test_unknown_widget_role_is_startup_failure(tmp_path):
    (tmp_path / "widgets.yaml").write_text(
        "widgets:\n"
        "  - id: odd\n"
        "    title: Odd\n"
        "    template_uri: ui://widget/odd.html\n"
        "    component: odd\n"
        "    role: teleport\n"
        "    invoking: a\n"
        "    invoked: b\n"
        "    response_text: c\n"
    )
    (tmp_path / "products.yaml").write_text("products: {}\n")

    with pytest.raises(StartupFailure, match="teleport"):
        Config(tmp_path)


def test_testing_flag(tmp_path):
    (tmp_path / "widgets.yaml").write_text("testing: true\nwidgets: []\n")
    (tmp_path / "products.yaml").write_text("products: {}\n")

    assert Config(tmp_path).testing_mode is True
