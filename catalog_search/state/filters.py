"""Per-resource filter state: pure merge/clear logic over immutable FilterSets.

Absence of a category key is the only representation of "no filter"; an empty
checkbox set or an empty string is never stored.
"""

import json
import logging
from collections.abc import Iterable, Mapping
from typing import Any

from catalog_search.contracts.search_v1 import (
    ALL_RESOURCES,
    CheckboxFilter,
    FilterCategory,
    FilterSet,
    FilterType,
    FilterValue,
    ResourceType,
    TextFilter,
    parse_resource,
)
from catalog_search.core.errors import MalformedURLState

logger = logging.getLogger(__name__)

ResourceFilters = Mapping[ResourceType, FilterSet]

DEFAULT_FILTER_CATEGORIES: dict[ResourceType, tuple[FilterCategory, ...]] = {
    ResourceType.TABLE: (
        FilterCategory("database", FilterType.CHECKBOX, "Source"),
        FilterCategory("schema", FilterType.TEXT, "Schema"),
        FilterCategory("table", FilterType.TEXT, "Table"),
        FilterCategory("column", FilterType.TEXT, "Column"),
        FilterCategory("tag", FilterType.CHECKBOX, "Tag"),
    ),
    ResourceType.USER: (),
    ResourceType.DASHBOARD: (
        FilterCategory("product", FilterType.CHECKBOX, "Product"),
        FilterCategory("group", FilterType.TEXT, "Group"),
        FilterCategory("name", FilterType.TEXT, "Name"),
    ),
}


def initial_filter_state() -> dict[ResourceType, FilterSet]:
    return {resource: {} for resource in ALL_RESOURCES}


def _checkbox_options(value: Any) -> frozenset[str]:
    # {option: true} is the wire/UI shape; falsy entries are unchecked options.
    if isinstance(value, CheckboxFilter):
        return value.options
    if isinstance(value, Mapping):
        return frozenset(str(k) for k, checked in value.items() if checked)
    if isinstance(value, str):
        return frozenset([value]) if value.strip() else frozenset()
    if isinstance(value, Iterable):
        return frozenset(str(v) for v in value if v is not None and str(v) != "")
    return frozenset()


def _normalize_text(value: Any) -> str:
    if isinstance(value, TextFilter):
        value = value.text
    if not isinstance(value, str):
        return ""
    return value.strip().lower()


def _infer_type(value: Any) -> FilterType:
    if isinstance(value, TextFilter) or isinstance(value, str):
        return FilterType.TEXT
    return FilterType.CHECKBOX


def resolve_filter_value(
    category: FilterCategory | None, value: Any
) -> FilterValue | None:
    """Resolve a raw value into its tagged variant. None means 'no filter'."""
    if value is None:
        return None
    filter_type = category.type if category is not None else _infer_type(value)
    if filter_type == FilterType.CHECKBOX:
        options = _checkbox_options(value)
        return CheckboxFilter(options) if options else None
    text = _normalize_text(value)
    return TextFilter(text) if text else None


class FilterStateManager:
    """Applies filter updates for each resource using its category configuration."""

    def __init__(
        self,
        categories: Mapping[ResourceType, Iterable[FilterCategory]] | None = None,
    ) -> None:
        source = categories if categories is not None else DEFAULT_FILTER_CATEGORIES
        self._categories: dict[ResourceType, dict[str, FilterCategory]] = {
            resource: {c.category_id: c for c in source.get(resource, ())}
            for resource in ALL_RESOURCES
        }

    def category(
        self, resource: ResourceType, category_id: str
    ) -> FilterCategory | None:
        return self._categories.get(resource, {}).get(category_id)

    def update_filter_by_category(
        self,
        filters: ResourceFilters,
        resource: ResourceType,
        category_id: str,
        value: Any,
    ) -> dict[ResourceType, FilterSet]:
        """Return new filters with `category_id` of `resource` set to `value`.

        Checkbox values are the complete new option set; text values are
        lower-cased and trimmed. Empty values delete the category key.
        """
        resolved = resolve_filter_value(self.category(resource, category_id), value)
        updated = {r: dict(fs) for r, fs in filters.items()}
        resource_filters = updated.setdefault(resource, {})
        if resolved is None:
            resource_filters.pop(category_id, None)
        else:
            resource_filters[category_id] = resolved
        return updated

    def toggle_checkbox_option(
        self,
        filter_set: FilterSet,
        category_id: str,
        option: str,
        checked: bool,
    ) -> frozenset[str] | None:
        """Compute the full option set after checking/unchecking one option.

        Returns None when nothing stays checked, which callers pass straight to
        update_filter_by_category to delete the category.
        """
        current = filter_set.get(category_id)
        options = set(current.options) if isinstance(current, CheckboxFilter) else set()
        if checked:
            options.add(option)
        else:
            options.discard(option)
        return frozenset(options) if options else None

    def clear_resource_filters(
        self, filters: ResourceFilters, resource: ResourceType
    ) -> dict[ResourceType, FilterSet]:
        updated = {r: dict(fs) for r, fs in filters.items()}
        updated[resource] = {}
        return updated

    def clear_all_filters(self) -> dict[ResourceType, FilterSet]:
        return initial_filter_state()

    def resolve_filter_set(self, resource: ResourceType, raw: Any) -> FilterSet:
        """Build a FilterSet from its JSON shape, dropping empty or unusable entries."""
        if not isinstance(raw, Mapping):
            return {}
        result: FilterSet = {}
        for category_id, value in raw.items():
            resolved = resolve_filter_value(
                self.category(resource, str(category_id)), value
            )
            if resolved is not None:
                result[str(category_id)] = resolved
        return result

    def filters_from_json(self, raw: str) -> dict[ResourceType, FilterSet]:
        """Parse `{resource: {category: value}}` JSON. Raises MalformedURLState."""
        try:
            data = json.loads(raw)
        except (json.JSONDecodeError, TypeError) as e:
            raise MalformedURLState("filters", str(raw)) from e
        if not isinstance(data, dict):
            raise MalformedURLState("filters", str(raw))
        parsed: dict[ResourceType, FilterSet] = {}
        for key, value in data.items():
            resource = parse_resource(key)
            if resource is None:
                logger.debug("Ignoring filters for unknown resource %r", key)
                continue
            parsed[resource] = self.resolve_filter_set(resource, value)
        return parsed


def filter_set_to_json(filter_set: FilterSet) -> dict[str, Any]:
    return {category_id: value.to_json() for category_id, value in sorted(filter_set.items())}


def filters_to_json(filters: ResourceFilters) -> str:
    """Serialize per-resource filters; resources with no active filter are omitted."""
    payload = {
        str(resource): filter_set_to_json(filter_set)
        for resource, filter_set in filters.items()
        if filter_set
    }
    return json.dumps(payload, sort_keys=True, separators=(",", ":"))


def has_active_filters(filters: ResourceFilters) -> bool:
    return any(filter_set for filter_set in filters.values())
