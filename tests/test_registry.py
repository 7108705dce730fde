import pytest

from domains_mcp.core.registry import (
    DOMAIN_TOOL_DESCRIPTION,
    GENERIC_TOOL_DESCRIPTION,
    PRODUCT_TOOL_DESCRIPTION,
    WIDGET_MIME_TYPE,
    CatalogEntry,
    WidgetRegistry,
    load_widget_html,
)
from domains_mcp.errors import StartupFailure, UnknownResource, UnknownTool


def make_entry(entry_id, uri="ui://widget/x.html", html="<div></div>"):
    return CatalogEntry(
        id=entry_id,
        title=entry_id.title(),
        template_uri=uri,
        invoking="working",
        invoked="done",
        html=html,
        response_text="Here you go!",
        role="domain_search",
    )


def test_list_tools_descriptors(registry):
    tools = {tool.name: tool for tool in registry.list_tools()}

    assert list(tools) == [
        "cheap-search-domains",
        "generic-search-domains",
        "list-all-products",
        "recommend-products",
    ]
    assert tools["cheap-search-domains"].description == DOMAIN_TOOL_DESCRIPTION
    assert tools["recommend-products"].description == PRODUCT_TOOL_DESCRIPTION
    assert tools["generic-search-domains"].title == "Search Domain Names (List View)"

    schema = tools["generic-search-domains"].inputSchema
    assert schema["required"] == ["keywords"]
    assert schema["additionalProperties"] is False
    assert set(schema["properties"]) == {
        "keywords", "domainName", "businessType", "targetAudience", "budget", "category",
    }

    meta = tools["cheap-search-domains"].meta
    assert meta["openai/outputTemplate"] == "ui://widget/domain-list-fullscreen.html"
    assert meta["openai/widgetAccessible"] is True
    assert meta["openai/resultCanProduceWidget"] is True
    assert tools["cheap-search-domains"].annotations.readOnlyHint is True


def test_generic_description_without_marker():
    registry = WidgetRegistry([make_entry("site-ideas")])
    assert registry.list_tools()[0].description == GENERIC_TOOL_DESCRIPTION


def test_every_listed_resource_is_readable(registry):
    resources = registry.list_resources()
    assert len(resources) == 4

    for resource in resources:
        assert resource.mimeType == WIDGET_MIME_TYPE
        assert resource.description == f"{resource.name} widget markup"
        assert registry.read_resource(str(resource.uri))


def test_read_unknown_resource(registry):
    with pytest.raises(UnknownResource):
        registry.read_resource("not-a-real-uri")


def test_resource_templates_mirror_resources(registry):
    templates = registry.list_resource_templates()
    resources = registry.list_resources()

    assert [t.uriTemplate for t in templates] == [str(r.uri) for r in resources]
    assert all(t.mimeType == WIDGET_MIME_TYPE for t in templates)


def test_resource_contents(registry):
    result = registry.resource_contents("ui://widget/products-recommend.html")

    contents = result.contents[0]
    assert str(contents.uri) == "ui://widget/products-recommend.html"
    assert contents.mimeType == WIDGET_MIME_TYPE
    assert "products-recommend-root" in contents.text
    assert contents.meta["openai/outputTemplate"] == "ui://widget/products-recommend.html"


def test_get_entry(registry):
    assert registry.get_entry("recommend-products").role == "product_recommendation"

    with pytest.raises(UnknownTool):
        registry.get_entry("delete-everything")


def test_shared_template_uri_last_entry_wins():
    first = make_entry("first-domains", html="<p>first</p>")
    second = make_entry("second-domains", html="<p>second</p>")
    registry = WidgetRegistry([first, second])

    assert registry.read_resource("ui://widget/x.html") == "<p>second</p>"
    assert registry.get_entry("first-domains").html == "<p>first</p>"


def test_duplicate_id_is_startup_failure():
    with pytest.raises(StartupFailure, match="Duplicate"):
        WidgetRegistry([make_entry("same"), make_entry("same")])


def test_hashed_bundle_fallback(tmp_path):
    (tmp_path / "products-list-1a2b.html").write_text("<p>old</p>")
    (tmp_path / "products-list-9f8e.html").write_text("<p>new</p>")

    assert load_widget_html(tmp_path, "products-list") == "<p>new</p>"


def test_direct_bundle_preferred(tmp_path):
    (tmp_path / "products-list.html").write_text("<p>direct</p>")
    (tmp_path / "products-list-9f8e.html").write_text("<p>hashed</p>")

    assert load_widget_html(tmp_path, "products-list") == "<p>direct</p>"


def test_missing_bundle_fails_fast(config, assets_dir):
    (assets_dir / "products-list.html").unlink()

    with pytest.raises(StartupFailure, match="products-list"):
        WidgetRegistry.from_config(config.get_all_widgets(), assets_dir)


def test_missing_assets_directory_fails_fast(config, tmp_path):
    with pytest.raises(StartupFailure, match="assets not found"):
        WidgetRegistry.from_config(config.get_all_widgets(), tmp_path / "nowhere")
