"""Shared typed constants for search workflow control flow."""

from enum import StrEnum

from catalog_search.contracts.search_v1 import ResourceType

# Auto-selection precedence when a full search names no resource.
RESOURCE_PRIORITY: tuple[ResourceType, ...] = (
    ResourceType.TABLE,
    ResourceType.USER,
    ResourceType.DASHBOARD,
)

# Lookahead categories queried by the type-ahead flow.
INLINE_RESOURCES: tuple[ResourceType, ...] = (ResourceType.TABLE, ResourceType.USER)


class IntentKey(StrEnum):
    """Scheduler keys. take-latest intents share one cancellation handle per key."""

    INLINE_DEBOUNCE = "inline_debounce"
    INLINE_SEARCH = "inline_search"
    INLINE_SELECT = "inline_select"
    SUBMIT_SEARCH = "submit_search"
    SUBMIT_SEARCH_RESOURCE = "submit_search_resource"
    URL_DID_UPDATE = "url_did_update"
    UPDATE_SEARCH_STATE = "update_search_state"
    LOAD_PREVIOUS_SEARCH = "load_previous_search"


class InlinePhase(StrEnum):
    """States of the type-ahead coordinator."""

    IDLE = "idle"
    DEBOUNCING = "debouncing"
    QUERYING = "querying"
    SUGGESTED = "suggested"
    FAILED = "failed"
