from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Iterable

from booking_console.application.dto.admin_api import ProviderFilters
from booking_console.application.exceptions import (
    CatalogContractError,
    CatalogUpstreamError,
    SelectionValidationError,
)
from booking_console.application.ports.catalog import CatalogPort
from booking_console.application.ports.notifier import NotifierPort
from booking_console.domain.entities.option import Option
from booking_console.domain.entities.selection_state import NodeSpec, SelectionNode, SelectionTuple

# Receives the selected id (or None) of every input of the node being fetched.
OptionFetcher = Callable[[dict[str, str | None]], Awaitable[list[Option]]]


BOOKING_GRAPH: tuple[NodeSpec, ...] = (
    NodeSpec("category"),
    NodeSpec("subcategory", depends_on=("category",)),
    NodeSpec("filter_attribute", depends_on=("category", "subcategory")),
    NodeSpec("segment", depends_on=("category", "subcategory"), optional_inputs=("filter_attribute",)),
    NodeSpec("filter_option", depends_on=("filter_attribute",)),
    NodeSpec(
        "provider",
        depends_on=("category", "subcategory"),
        optional_inputs=("filter_attribute", "filter_option"),
    ),
)

_TUPLE_FIELDS = {
    "category": "category_id",
    "subcategory": "subcategory_id",
    "segment": "segment_id",
    "filter_attribute": "filter_attribute_id",
    "filter_option": "filter_option_id",
    "provider": "provider_id",
}


def catalog_fetchers(catalog: CatalogPort, provider_page_size: int = 10) -> dict[str, OptionFetcher]:
    """Bind every node of BOOKING_GRAPH to its admin API listing."""

    async def categories(ids: dict[str, str | None]) -> list[Option]:
        return await catalog.list_categories()

    async def subcategories(ids: dict[str, str | None]) -> list[Option]:
        return await catalog.list_subcategories(ids["category"])

    async def filter_attributes(ids: dict[str, str | None]) -> list[Option]:
        return await catalog.list_filter_attributes(ids["category"], ids["subcategory"])

    async def segments(ids: dict[str, str | None]) -> list[Option]:
        return await catalog.list_segments(ids["category"], ids["subcategory"], ids.get("filter_attribute"))

    async def filter_options(ids: dict[str, str | None]) -> list[Option]:
        return await catalog.list_filter_options(ids["filter_attribute"])

    async def providers(ids: dict[str, str | None]) -> list[Option]:
        filters = ProviderFilters(
            category_id=ids["category"],
            subcategory_id=ids["subcategory"],
            attribute_id=ids.get("filter_attribute"),
            option_id=ids.get("filter_option"),
        )
        page = await catalog.search_providers(filters, page=1, page_size=provider_page_size)
        return [Option(id=item.id, label=item.label) for item in page.items]

    return {
        "category": categories,
        "subcategory": subcategories,
        "filter_attribute": filter_attributes,
        "segment": segments,
        "filter_option": filter_options,
        "provider": providers,
    }


class SelectionGraphResolver:
    """
    Dependent selections of one form.

    Changing a node clears every descendant and refetches the descendants whose
    required inputs are all set. Fetches are tagged with the node's generation;
    a result that comes back after the node was reset or refetched is dropped.
    """

    def __init__(
        self,
        fetchers: dict[str, OptionFetcher],
        graph: Iterable[NodeSpec] = BOOKING_GRAPH,
        notifier: NotifierPort | None = None,
    ) -> None:
        self._nodes: dict[str, SelectionNode] = {}
        self._children: dict[str, list[str]] = {}
        for node_spec in graph:
            if node_spec.key in self._nodes:
                raise ValueError(f"Duplicate selection node: {node_spec.key}")
            for parent in node_spec.inputs:
                # Graph must be listed parents-first.
                if parent not in self._nodes:
                    raise ValueError(f"Node {node_spec.key} depends on unknown or later node {parent}")
                self._children[parent].append(node_spec.key)
            if node_spec.key not in fetchers:
                raise ValueError(f"No option fetcher for node {node_spec.key}")
            self._nodes[node_spec.key] = SelectionNode(spec=node_spec)
            self._children[node_spec.key] = []
        self._fetchers = fetchers
        self._notifier = notifier
        self._logger = logging.getLogger(__name__)

    def node(self, key: str) -> SelectionNode:
        try:
            return self._nodes[key]
        except KeyError:
            raise SelectionValidationError(f"Unknown selection: {key}") from None

    def value(self, key: str) -> Option | None:
        return self.node(key).value

    def is_enabled(self, key: str) -> bool:
        return all(self._nodes[dep].value is not None for dep in self.node(key).depends_on)

    def descendants(self, key: str) -> list[str]:
        """Every node reachable from key, in graph order."""
        seen: set[str] = set()
        stack = list(self._children[key])
        while stack:
            child = stack.pop()
            if child not in seen:
                seen.add(child)
                stack.extend(self._children[child])
        return [k for k in self._nodes if k in seen]

    async def load_roots(self) -> None:
        roots = [key for key, node in self._nodes.items() if not node.depends_on]
        await asyncio.gather(*(self._refresh(key) for key in roots))

    async def on_node_change(self, key: str, value: Option | str | None) -> Option | None:
        node = self.node(key)
        if not self.is_enabled(key):
            missing = [dep for dep in node.depends_on if self._nodes[dep].value is None]
            raise SelectionValidationError(f"Select {', '.join(missing)} before {key}")

        option = self._resolve_option(node, value)
        node.value = option

        self._logger.info("Selection changed", extra={"node": key, "selected": option.id if option else None})
        await self._invalidate_descendants(key)
        return option

    def offer(self, key: str, option: Option) -> None:
        """Make an option found outside the node's listing (e.g. by search) selectable."""
        node = self.node(key)
        if all(o.id != option.id for o in node.options):
            node.options.append(option)

    def selection_tuple(self) -> SelectionTuple:
        ids: dict[str, Any] = {}
        for key, field_name in _TUPLE_FIELDS.items():
            node = self._nodes.get(key)
            ids[field_name] = node.value.id if node and node.value else None
        return SelectionTuple(**ids)

    def snapshot(self) -> list[dict[str, Any]]:
        out: list[dict[str, Any]] = []
        for key, node in self._nodes.items():
            out.append(
                {
                    "key": key,
                    "value": node.value,
                    "options": list(node.options),
                    "depends_on": list(node.depends_on),
                    "enabled": self.is_enabled(key),
                    "loading": node.loading,
                    "error": node.error,
                    "generation": node.generation,
                }
            )
        return out

    def _resolve_option(self, node: SelectionNode, value: Option | str | None) -> Option | None:
        if value is None:
            return None
        value = value.id if isinstance(value, Option) else str(value).strip()
        if not value:
            return None
        for option in node.options:
            if option.id == value:
                return option
        raise SelectionValidationError(f"Unknown {node.key} option: {value}")

    async def _invalidate_descendants(self, key: str) -> None:
        affected = self.descendants(key)
        for child in affected:
            self._nodes[child].reset()
        to_fetch = [child for child in affected if self.is_enabled(child)]
        if to_fetch:
            self._logger.debug("Refetching descendants", extra={"node": key, "refetch": to_fetch})
            await asyncio.gather(*(self._refresh(child) for child in to_fetch))

    def _inputs_for(self, node: SelectionNode) -> dict[str, str | None]:
        ids: dict[str, str | None] = {}
        for dep in node.spec.inputs:
            selected = self._nodes[dep].value
            ids[dep] = selected.id if selected else None
        return ids

    async def _refresh(self, key: str) -> None:
        node = self._nodes[key]
        node.generation += 1
        generation = node.generation
        node.loading = True
        node.error = None

        try:
            options = await self._fetchers[key](self._inputs_for(node))
        except (CatalogUpstreamError, CatalogContractError) as e:
            self._fail(node, generation, e)
            return
        except Exception as e:
            self._logger.exception("Unexpected error loading options", extra={"node": key})
            self._fail(node, generation, e)
            return

        if node.generation != generation:
            self._logger.debug(
                "Dropped stale options",
                extra={"node": key, "generation": generation, "reason": f"current={node.generation}"},
            )
            return

        node.options = list(options)
        node.loading = False
        if node.value is not None and all(o.id != node.value.id for o in node.options):
            self._logger.info("Selected option no longer offered", extra={"node": key, "selected": node.value.id})
            node.value = None
            await self._invalidate_descendants(key)

    def _fail(self, node: SelectionNode, generation: int, error: Exception) -> None:
        if node.generation != generation:
            # Superseded; the newer fetch owns the node now.
            return
        node.options = []
        node.loading = False
        node.error = str(error)
        self._logger.warning(
            "Failed to load options",
            extra={"node": node.key, "generation": generation, "error": str(error)},
        )
        if self._notifier:
            label = node.key.replace("_", " ")
            self._notifier.notify("error", f"Could not load {label} options", node=node.key, error=str(error))
