"""Error taxonomy for search workflows."""


class CatalogSearchError(Exception):
    """Base class for errors raised by the search orchestration layer."""


class RemoteCallFailure(CatalogSearchError):
    """The search backend rejected or failed a call for one resource category."""

    def __init__(self, resource: str, message: str):
        self.resource = resource
        super().__init__(f"{resource}: {message}")


class MalformedURLState(CatalogSearchError):
    """A URL query field could not be parsed (bad index or filters JSON)."""

    def __init__(self, field: str, raw: str):
        self.field = field
        self.raw = raw
        super().__init__(f"malformed '{field}' in URL: {raw[:100]!r}")
