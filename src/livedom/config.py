"""ContextVar-based sync configuration for livedom.

Provides thread-local configuration using Python's ContextVars (PEP 567).
Components read the active config unless an explicit ``config=`` is passed.

Thread Safety:
    ContextVars are thread-local by design. Each thread has independent storage,
    so no locks are needed and race conditions are impossible.

Usage:
    from livedom.config import SyncConfig, sync_config_context

    with sync_config_context(SyncConfig(id_attribute="data-sync-id")):
        html = generate_instrumented_html(snapshot, text)

"""

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass

VOID_ELEMENTS: frozenset[str] = frozenset(
    {
        "area",
        "base",
        "br",
        "col",
        "embed",
        "hr",
        "img",
        "input",
        "keygen",
        "link",
        "meta",
        "param",
        "source",
        "track",
        "wbr",
    }
)

RAW_TEXT_ELEMENTS: frozenset[str] = frozenset({"script", "style", "textarea", "title"})


@dataclass(frozen=True, slots=True)
class SyncConfig:
    """Immutable sync configuration.

    Attributes:
        id_attribute: Reserved attribute carrying tag ids in instrumented
            and observed markup
        incremental: Allow the incremental update path (False forces every
            update through a full reparse)
        void_elements: Elements that never have children or an end tag
        raw_text_elements: Elements whose body is scanned as plain text
        signature_length: Hex characters kept from each node fingerprint

    """

    id_attribute: str = "data-livedom-id"
    incremental: bool = True
    void_elements: frozenset[str] = VOID_ELEMENTS
    raw_text_elements: frozenset[str] = RAW_TEXT_ELEMENTS
    signature_length: int = 16

    @classmethod
    def from_dict(cls, config_dict: dict) -> "SyncConfig":
        """Create SyncConfig from dictionary.

        Only includes keys that are valid SyncConfig fields; unknown keys
        are silently ignored. Element sets may be given as any iterable.

        Example:
            >>> config = SyncConfig.from_dict({
            ...     "incremental": False,
            ...     "unknown_key": "ignored",
            ... })
            >>> config.incremental
            False

        """
        valid_fields = {f.name for f in cls.__dataclass_fields__.values()}
        filtered = {k: v for k, v in config_dict.items() if k in valid_fields}
        for key in ("void_elements", "raw_text_elements"):
            if key in filtered:
                filtered[key] = frozenset(name.lower() for name in filtered[key])
        return cls(**filtered)


# Module-level default config (reused, never recreated)
_DEFAULT_CONFIG: SyncConfig = SyncConfig()

_sync_config: ContextVar[SyncConfig] = ContextVar(
    "sync_config",
    default=_DEFAULT_CONFIG,
)


def get_sync_config() -> SyncConfig:
    """Get current sync configuration (thread-local)."""
    return _sync_config.get()


def set_sync_config(config: SyncConfig) -> None:
    """Set sync configuration for current context."""
    _sync_config.set(config)


def reset_sync_config() -> None:
    """Reset to default configuration."""
    _sync_config.set(_DEFAULT_CONFIG)


def resolve_config(config: SyncConfig | None) -> SyncConfig:
    """Return ``config`` if given, else the active context config."""
    return config if config is not None else _sync_config.get()


@contextmanager
def sync_config_context(config: SyncConfig) -> Iterator[None]:
    """Context manager for temporary config changes.

    Properly restores the previous config even if an exception is raised.

    Example:
        >>> with sync_config_context(SyncConfig(incremental=False)):
        ...     get_sync_config().incremental
        False

    """
    previous = _sync_config.get()
    _sync_config.set(config)
    try:
        yield
    finally:
        _sync_config.set(previous)


__all__ = [
    "RAW_TEXT_ELEMENTS",
    "VOID_ELEMENTS",
    "SyncConfig",
    "get_sync_config",
    "reset_sync_config",
    "resolve_config",
    "set_sync_config",
    "sync_config_context",
]
