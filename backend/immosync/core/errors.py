class SyncError(Exception):
    """Base class for failures that abort an OpenImmo sync run."""


class ConfigurationError(SyncError):
    """Interface, folders or mapping rules are missing or unusable."""


class MappingConfigError(ConfigurationError):
    """A mapping rule carries a malformed selector or an unknown attribute."""


class FeedError(SyncError):
    """The sync file could not be located, extracted or decoded."""
