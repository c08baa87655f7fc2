"""Error taxonomy for the matching and claim verification pipeline."""


class MatchingError(Exception):
    """Base class for all pipeline errors."""


class ProviderError(MatchingError):
    """An embedding or language model provider could not produce a result."""


class ConfigurationAbsentError(ProviderError):
    """The provider has no API key configured.

    Callers treat this as "feature disabled", never as a fatal error.
    """


class ProviderTransientError(ProviderError):
    """Network failure or 5xx from a provider after retries/fallbacks."""


class ProviderMalformedResponseError(ProviderError):
    """The provider answered, but not with the expected shape."""


class PersistenceError(MatchingError):
    """A write to (or read from) the data store failed."""


class NotFoundError(MatchingError):
    """A referenced row does not exist."""

    def __init__(self, entity: str, entity_id: str):
        super().__init__(f"{entity} not found: {entity_id}")
        self.entity = entity
        self.entity_id = entity_id
