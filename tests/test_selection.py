"""
Tests for the dependent selection graph.
"""

from __future__ import annotations

import asyncio

import pytest

from booking_console.application.exceptions import SelectionValidationError
from booking_console.application.use_cases.selection import (
    BOOKING_GRAPH,
    SelectionGraphResolver,
    catalog_fetchers,
)
from booking_console.domain.entities.option import Option
from booking_console.domain.entities.selection_state import NodeSpec

pytestmark = pytest.mark.asyncio


def _resolver(catalog, notifier=None) -> SelectionGraphResolver:
    return SelectionGraphResolver(catalog_fetchers(catalog), BOOKING_GRAPH, notifier)


def _ids(options) -> list[str]:
    return [o.id for o in options]


async def test_load_roots_fetches_categories_only(catalog):
    resolver = _resolver(catalog)
    await resolver.load_roots()

    assert _ids(resolver.node("category").options) == ["Plumbing", "Cleaning", "Electrical"]
    assert catalog.calls == ["list_categories"]
    assert not resolver.is_enabled("subcategory")
    assert resolver.node("subcategory").options == []


async def test_category_change_fetches_subcategories(catalog):
    resolver = _resolver(catalog)
    await resolver.load_roots()

    await resolver.on_node_change("category", "Plumbing")

    assert resolver.value("category") == Option("Plumbing", "Plumbing")
    assert _ids(resolver.node("subcategory").options) == ["Pipe Repair", "Tap Installation"]
    # Attribute, segment and provider still need a subcategory.
    assert catalog.count("list_filter_attributes") == 0
    assert catalog.count("search_providers") == 0
    assert not resolver.is_enabled("provider")


async def test_subcategory_change_fetches_children_concurrently(catalog):
    resolver = _resolver(catalog)
    await resolver.load_roots()
    await resolver.on_node_change("category", "Plumbing")

    await resolver.on_node_change("subcategory", "Pipe Repair")

    assert _ids(resolver.node("filter_attribute").options) == ["Pipe Material"]
    assert _ids(resolver.node("segment").options) == ["Residential", "Commercial"]
    assert _ids(resolver.node("provider").options) == ["ProviderX", "ProviderY"]
    assert resolver.node("filter_option").options == []
    assert not resolver.is_enabled("filter_option")


async def test_changing_category_clears_every_descendant(catalog):
    resolver = _resolver(catalog)
    await resolver.load_roots()
    await resolver.on_node_change("category", "Plumbing")
    await resolver.on_node_change("subcategory", "Pipe Repair")
    await resolver.on_node_change("filter_attribute", "Pipe Material")
    await resolver.on_node_change("filter_option", "Copper")
    await resolver.on_node_change("segment", "Commercial")
    await resolver.on_node_change("provider", "ProviderY")

    await resolver.on_node_change("category", "Cleaning")

    for key in ("subcategory", "segment", "filter_attribute", "filter_option", "provider"):
        assert resolver.value(key) is None, key
    for key in ("segment", "filter_attribute", "filter_option", "provider"):
        assert resolver.node(key).options == [], key
    assert _ids(resolver.node("subcategory").options) == ["Deep Cleaning", "Sofa Cleaning"]
    assert resolver.selection_tuple().category_id == "Cleaning"


async def test_attribute_change_refetches_segment_and_provider(catalog):
    resolver = _resolver(catalog)
    await resolver.load_roots()
    await resolver.on_node_change("category", "Plumbing")
    await resolver.on_node_change("subcategory", "Pipe Repair")
    await resolver.on_node_change("segment", "Residential")
    segments_before = catalog.count("list_segments")

    await resolver.on_node_change("filter_attribute", "Pipe Material")

    assert resolver.value("segment") is None
    assert catalog.count("list_segments") == segments_before + 1
    assert _ids(resolver.node("filter_option").options) == ["PVC", "Copper"]


async def test_segment_change_touches_nothing_else(catalog):
    resolver = _resolver(catalog)
    await resolver.load_roots()
    await resolver.on_node_change("category", "Plumbing")
    await resolver.on_node_change("subcategory", "Pipe Repair")
    await resolver.on_node_change("provider", "ProviderX")
    calls_before = len(catalog.calls)

    await resolver.on_node_change("segment", "Commercial")

    assert len(catalog.calls) == calls_before
    assert resolver.value("provider").id == "ProviderX"


async def test_filter_option_narrows_providers(catalog):
    resolver = _resolver(catalog)
    await resolver.load_roots()
    await resolver.on_node_change("category", "Cleaning")
    await resolver.on_node_change("subcategory", "Deep Cleaning")
    await resolver.on_node_change("filter_attribute", "Home Size")

    await resolver.on_node_change("filter_option", "3 BHK")

    assert _ids(resolver.node("provider").options) == ["Sparkle"]


async def test_selecting_disabled_node_is_rejected(catalog):
    resolver = _resolver(catalog)
    await resolver.load_roots()

    with pytest.raises(SelectionValidationError):
        await resolver.on_node_change("provider", "ProviderX")


async def test_unknown_option_id_is_rejected(catalog):
    resolver = _resolver(catalog)
    await resolver.load_roots()

    with pytest.raises(SelectionValidationError):
        await resolver.on_node_change("category", "Gardening")
    assert resolver.value("category") is None


async def test_clearing_a_selection_disables_children(catalog):
    resolver = _resolver(catalog)
    await resolver.load_roots()
    await resolver.on_node_change("category", "Plumbing")

    await resolver.on_node_change("category", None)

    assert resolver.value("category") is None
    assert resolver.node("subcategory").options == []
    assert not resolver.is_enabled("subcategory")


async def test_fetch_failure_clears_only_that_branch(catalog, notifier):
    resolver = _resolver(catalog, notifier)
    await resolver.load_roots()
    await resolver.on_node_change("category", "Plumbing")
    catalog.fail("list_segments")

    await resolver.on_node_change("subcategory", "Pipe Repair")

    segment = resolver.node("segment")
    assert segment.options == []
    assert segment.error is not None
    assert not segment.loading
    # Siblings loaded fine.
    assert _ids(resolver.node("filter_attribute").options) == ["Pipe Material"]
    assert _ids(resolver.node("provider").options) == ["ProviderX", "ProviderY"]
    assert [n.level for n in notifier.items] == ["error"]
    assert notifier.items[0].context["node"] == "segment"


async def test_retrigger_recovers_after_failure(catalog):
    resolver = _resolver(catalog)
    await resolver.load_roots()
    await resolver.on_node_change("category", "Plumbing")
    catalog.fail("list_segments")
    await resolver.on_node_change("subcategory", "Pipe Repair")

    catalog.recover("list_segments")
    await resolver.on_node_change("subcategory", "Pipe Repair")

    assert resolver.node("segment").error is None
    assert _ids(resolver.node("segment").options) == ["Residential", "Commercial"]


async def test_stale_ancestor_results_are_dropped(catalog, wait_calls):
    resolver = _resolver(catalog)
    await resolver.load_roots()
    release_first = catalog.hold("list_subcategories")

    first = asyncio.create_task(resolver.on_node_change("category", "Plumbing"))
    await wait_calls(catalog, "list_subcategories", 1)
    # Second change overtakes the first while its fetch is still pending.
    await resolver.on_node_change("category", "Cleaning")
    release_first.set()
    await first

    assert resolver.value("category").id == "Cleaning"
    assert _ids(resolver.node("subcategory").options) == ["Deep Cleaning", "Sofa Cleaning"]
    assert not resolver.node("subcategory").loading


async def test_stale_results_for_cleared_node_are_dropped(catalog, wait_calls):
    resolver = _resolver(catalog)
    await resolver.load_roots()
    await resolver.on_node_change("category", "Plumbing")
    release = catalog.hold("search_providers")

    pending = asyncio.create_task(resolver.on_node_change("subcategory", "Pipe Repair"))
    await wait_calls(catalog, "search_providers", 1)
    await resolver.on_node_change("category", "Electrical")
    release.set()
    await pending

    assert resolver.node("provider").options == []
    assert resolver.value("subcategory") is None
    assert _ids(resolver.node("subcategory").options) == ["Wiring", "Fan Installation"]


async def test_descendants_follow_optional_inputs(catalog):
    resolver = _resolver(catalog)

    assert resolver.descendants("filter_attribute") == ["segment", "filter_option", "provider"]
    assert resolver.descendants("segment") == []
    assert resolver.descendants("category") == [
        "subcategory",
        "filter_attribute",
        "segment",
        "filter_option",
        "provider",
    ]


async def test_graph_must_list_parents_first(catalog):
    graph = (NodeSpec("subcategory", depends_on=("category",)), NodeSpec("category"))
    with pytest.raises(ValueError):
        SelectionGraphResolver(catalog_fetchers(catalog), graph)


async def test_dropped_value_on_reload_clears_descendants(catalog):
    resolver = _resolver(catalog)
    await resolver.load_roots()
    await resolver.on_node_change("category", "Plumbing")
    await resolver.on_node_change("subcategory", "Pipe Repair")
    provider_generation = resolver.node("provider").generation
    catalog._data.categories.remove("Plumbing")

    await resolver.load_roots()

    assert resolver.value("category") is None
    for key in ("subcategory", "segment", "filter_attribute", "filter_option", "provider"):
        assert resolver.value(key) is None, key
        assert resolver.node(key).options == [], key
    assert resolver.node("provider").generation > provider_generation


async def test_option_objects_are_checked_against_listing(catalog):
    resolver = _resolver(catalog)
    await resolver.load_roots()

    with pytest.raises(SelectionValidationError):
        await resolver.on_node_change("category", Option("Gardening", "Gardening"))

    resolver.offer("category", Option("Gardening", "Gardening"))
    selected = await resolver.on_node_change("category", Option("Gardening", "Gardening"))
    assert selected.id == "Gardening"
