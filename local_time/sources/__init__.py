"""
Configuration Sources

RESPONSIBILITY: Supply configuration batches ({universes, networks}) to the
registry's initialization
OUTPUTS: ConfigBatch (immutable) or None when a source has nothing to offer

WHAT THIS LAYER MUST NOT DO:
============================
- Register anything itself (the registry consumes batches)
- Decide whether a failure is fatal (the registry skips failed sources)

Sources are declared statically, in order, by the caller. There is no
runtime discovery of packages: a config module that wants to contribute
universes is wired in with CallableSource.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Callable, Optional, Union

from ..contracts.base import Error, ErrorCode
from ..domain.serialization import (
    ConfigBatch, batch_from_dict, loads_batch,
)


class ConfigSourceError(Exception):
    """A configuration source could not produce a batch."""

    def __init__(self, error: Error):
        self.error = error
        super().__init__(error.message)


# =============================================================================
# SOURCE INTERFACE (Strategy pattern for different origins)
# =============================================================================

class ConfigSource(ABC):
    """
    Abstract base for configuration sources.

    ``load_batch`` returns None when the source is absent (an optional file
    that does not exist) and raises ConfigSourceError when it exists but
    cannot be read or parsed.
    """

    @property
    @abstractmethod
    def source_id(self) -> str:
        """Stable identifier used in audit entries."""
        pass

    @property
    @abstractmethod
    def source_type(self) -> str:
        pass

    @abstractmethod
    def load_batch(self) -> Optional[ConfigBatch]:
        pass

    def _fail(self, code: ErrorCode, message: str) -> ConfigSourceError:
        return ConfigSourceError(Error.create(code, message, source_id=self.source_id))


class JsonFileSource(ConfigSource):
    """Batch stored as a JSON file on disk."""

    def __init__(self, path: Union[str, Path], required: bool = False):
        self._path = Path(path)
        self._required = required

    @property
    def source_id(self) -> str:
        return str(self._path)

    @property
    def source_type(self) -> str:
        return "json_file"

    @property
    def path(self) -> Path:
        return self._path

    def load_batch(self) -> Optional[ConfigBatch]:
        if not self._path.exists():
            if self._required:
                raise self._fail(ErrorCode.SOURCE_UNREADABLE, f"File not found: {self._path}")
            return None

        if not self._path.is_file():
            raise self._fail(ErrorCode.SOURCE_UNREADABLE, f"Path is not a file: {self._path}")

        try:
            text = self._path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise self._fail(ErrorCode.SOURCE_UNREADABLE, f"Cannot read {self._path}: {exc}") from exc

        try:
            return loads_batch(text)
        except (ValueError, TypeError) as exc:
            raise self._fail(ErrorCode.MALFORMED_PAYLOAD, f"{self._path}: {exc}") from exc


class StaticBatchSource(ConfigSource):
    """An already-built batch, e.g. from tests or an embedding application."""

    def __init__(self, batch: ConfigBatch, source_id: str = "static"):
        self._batch = batch
        self._source_id = source_id

    @property
    def source_id(self) -> str:
        return self._source_id

    @property
    def source_type(self) -> str:
        return "static"

    def load_batch(self) -> Optional[ConfigBatch]:
        return self._batch


class CallableSource(ConfigSource):
    """
    Batch produced by a function, typically a config module's entry point.

    The callable may return a ConfigBatch, a JSON-shaped dict, or None.
    """

    def __init__(self, factory: Callable[[], Any], source_id: Optional[str] = None):
        self._factory = factory
        self._source_id = source_id or getattr(factory, "__qualname__", repr(factory))

    @property
    def source_id(self) -> str:
        return self._source_id

    @property
    def source_type(self) -> str:
        return "callable"

    def load_batch(self) -> Optional[ConfigBatch]:
        try:
            result = self._factory()
        except Exception as exc:
            raise self._fail(ErrorCode.SOURCE_FAILED, f"{self._source_id} raised {exc!r}") from exc

        if result is None or isinstance(result, ConfigBatch):
            return result
        try:
            return batch_from_dict(result)
        except (ValueError, TypeError) as exc:
            raise self._fail(ErrorCode.MALFORMED_PAYLOAD, f"{self._source_id}: {exc}") from exc


__all__ = [
    'ConfigBatch',
    'ConfigSource',
    'ConfigSourceError',
    'JsonFileSource',
    'StaticBatchSource',
    'CallableSource',
]
