"""Version-tagged catalog cache.

The cache is a port injected into `load_catalog`; the extraction engine never
touches it. Entries are keyed by `CACHE_KEY` plus a version tag. Bump
`CACHE_VERSION` whenever the record shape changes so stale entries missing a
field are never served as complete.
"""

from __future__ import annotations

import hashlib
import json
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Final, Protocol, override

from jsonschema import validators
from jsonschema.exceptions import ValidationError

from picorules_catalog.common import CATALOG_SCHEMA_PATH
from picorules_catalog.errors import CacheError
from picorules_catalog.models import Catalog

if TYPE_CHECKING:
    from picorules_catalog._types import CatalogDict

logger = logging.getLogger(__name__)

CACHE_KEY: Final = 'picorule-sentry-cache'
# v2: records gained referenced_in_templates
CACHE_VERSION: Final = 'v2'


def cache_entry_name(version: str = CACHE_VERSION, /) -> str:
    return f'{CACHE_KEY}-{version}'


def source_fingerprint(*parts: object) -> str:
    """Short stable digest of where a catalog is built from."""
    digest = hashlib.sha256('\0'.join(map(str, parts)).encode()).hexdigest()
    return digest[:12]


def now_ms() -> int:
    return int(time.time() * 1000)


def decode_catalog(payload: str, /) -> Catalog:
    """
    Decode and schema-check a serialized catalog.

    Raises:
        CacheError: If the payload is not valid JSON or does not match the
            catalog schema.
    """
    try:
        data: CatalogDict = json.loads(payload)
        schema = json.loads(CATALOG_SCHEMA_PATH.read_text(encoding='utf-8'))
        validators.validate(data, schema)
        return Catalog.from_json(data)
    except (ValueError, ValidationError) as e:
        raise CacheError(f'Invalid cached catalog: {e}') from e


class CachePort(Protocol):
    def get(self, version: str = CACHE_VERSION, /) -> Catalog | None: ...

    def set(self, catalog: Catalog, version: str = CACHE_VERSION, /) -> None: ...

    def clear(self, version: str = CACHE_VERSION, /) -> None: ...


@dataclass(slots=True)
class MemoryCache(CachePort):
    """Process-local cache, mostly useful for tests and single runs."""

    entries: dict[str, Catalog] = field(default_factory=dict)

    @override
    def get(self, version: str = CACHE_VERSION, /) -> Catalog | None:
        return self.entries.get(cache_entry_name(version))

    @override
    def set(self, catalog: Catalog, version: str = CACHE_VERSION, /) -> None:
        self.entries[cache_entry_name(version)] = catalog

    @override
    def clear(self, version: str = CACHE_VERSION, /) -> None:
        self.entries.pop(cache_entry_name(version), None)


@dataclass(slots=True)
class FileCache(CachePort):
    """
    Cache storing one JSON document per version tag.

    Attributes:
        directory: Directory holding `<CACHE_KEY>-<version>.json` files. It is
            created on first write.
    """

    directory: Path

    def __post_init__(self) -> None:
        self.directory = Path(self.directory)

    def path_for(self, version: str = CACHE_VERSION, /) -> Path:
        return self.directory / f'{cache_entry_name(version)}.json'

    @override
    def get(self, version: str = CACHE_VERSION, /) -> Catalog | None:
        path = self.path_for(version)
        if not path.exists():
            return None

        try:
            catalog = decode_catalog(path.read_text(encoding='utf-8'))
        except (OSError, CacheError) as e:
            # Unreadable entries behave like a miss
            logger.warning('Failed to load cache %s: %s', path, e)
            return None

        logger.info('Loaded catalog from cache %s', path)
        return catalog

    @override
    def set(self, catalog: Catalog, version: str = CACHE_VERSION, /) -> None:
        path = self.path_for(version)
        data = {**catalog.to_json(), 'version': version}

        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            path.write_text(json.dumps(data, indent=2), encoding='utf-8')
        except OSError as e:
            logger.error('Failed to cache catalog to %s: %s', path, e)  # noqa: TRY400
            return

        logger.info('Cached catalog to %s', path)

    @override
    def clear(self, version: str = CACHE_VERSION, /) -> None:
        self.path_for(version).unlink(missing_ok=True)
        logger.info('Cache cleared')


def cache_age_minutes(catalog: Catalog, /, *, now: int | None = None) -> int:
    """Whole minutes since the catalog was built."""
    current = now_ms() if now is None else now
    return (current - catalog.timestamp) // 60_000


def format_cache_timestamp(timestamp: int, /, *, now: int | None = None) -> str:
    """
    Describe a millisecond timestamp relative to now.

    Falls back to the absolute local time once the timestamp is a day old.
    """
    current = now_ms() if now is None else now
    diff_mins = (current - timestamp) // 60_000

    if diff_mins < 1:
        return 'just now'
    if diff_mins == 1:
        return '1 minute ago'
    if diff_mins < 60:
        return f'{diff_mins} minutes ago'

    diff_hours = diff_mins // 60
    if diff_hours == 1:
        return '1 hour ago'
    if diff_hours < 24:
        return f'{diff_hours} hours ago'

    return datetime.fromtimestamp(timestamp / 1000).strftime('%Y-%m-%d %H:%M')
