"""Catalog loading.

Downloads the package catalog or, when that is impossible, falls back to
the catalog bundled with debloatctl. Loading never fails hard: the
caller always gets a usable catalog plus a DONE/FAILED state.
"""

import json
import logging
from importlib import resources
from pathlib import Path
from typing import Any

import httpx
from pydantic import ValidationError

from debloatctl.core.paths import ensure_cache_dir, get_cached_catalog_path
from debloatctl.core.settings import DEFAULT_CATALOG_URL
from debloatctl.models.catalog import Catalog, CatalogEntry, CatalogLoadResult, CatalogState

logger = logging.getLogger(__name__)


class CatalogFormatError(Exception):
    """Raised when catalog data does not have the expected shape."""


def parse_catalog(data: Any) -> Catalog:
    """Validate decoded catalog JSON.

    Two layouts are accepted: an object keyed by package identifier, or
    an array of entries carrying an ``id`` field.

    Args:
        data: Decoded JSON document.

    Returns:
        Package identifier to catalog entry mapping.

    Raises:
        CatalogFormatError: If the document or an entry is invalid.
    """
    if isinstance(data, dict):
        items = [{**value, "id": key} for key, value in data.items() if isinstance(value, dict)]
    elif isinstance(data, list):
        items = data
    else:
        msg = f"Catalog must be a JSON object or array, got {type(data).__name__}"
        raise CatalogFormatError(msg)

    catalog: Catalog = {}
    try:
        for item in items:
            entry = CatalogEntry.model_validate(item)
            catalog[entry.id] = entry
    except ValidationError as e:
        raise CatalogFormatError(f"Invalid catalog entry: {e}") from e
    return catalog


def load_embedded_catalog() -> Catalog:
    """Load the catalog bundled with the package.

    Raises:
        CatalogFormatError: If the bundled file is corrupt.
    """
    text = resources.files("debloatctl.data").joinpath("catalog.json").read_text(encoding="utf-8")
    try:
        return parse_catalog(json.loads(text))
    except json.JSONDecodeError as e:
        raise CatalogFormatError(f"Bundled catalog is not valid JSON: {e}") from e


class CatalogLoader:
    """Loads the remote catalog with an embedded fallback.

    Attributes:
        url: URL of the remote JSON catalog.
        timeout: HTTP timeout in seconds.
        cache_path: Where a successfully downloaded catalog is stored.
    """

    def __init__(
        self,
        url: str = DEFAULT_CATALOG_URL,
        timeout: float = 10.0,
        cache_path: Path | None = None,
    ) -> None:
        self.url = url
        self.timeout = timeout
        self.cache_path = cache_path

    async def load(self, remote: bool = True) -> CatalogLoadResult:
        """Load the catalog.

        Args:
            remote: Try the remote catalog first. When False, the embedded
                catalog is used directly.

        Returns:
            Remote catalog with DONE, or the embedded catalog with FAILED.
        """
        if not remote:
            logger.info("Remote catalog skipped, using embedded catalog")
            return CatalogLoadResult(
                catalog=load_embedded_catalog(),
                state=CatalogState.FAILED,
                error="Remote catalog not requested",
            )

        try:
            catalog = await self._download()
        except (httpx.HTTPError, json.JSONDecodeError, CatalogFormatError) as e:
            logger.error(
                "Error loading remote catalog: %s. Falling back to embedded (and outdated) list",
                e,
            )
            return CatalogLoadResult(
                catalog=load_embedded_catalog(),
                state=CatalogState.FAILED,
                error=str(e),
            )

        self._store(catalog)
        return CatalogLoadResult(catalog=catalog, state=CatalogState.DONE)

    async def _download(self) -> Catalog:
        """Fetch and validate the remote catalog.

        Raises:
            httpx.HTTPError: On transport errors or non-2xx responses.
            json.JSONDecodeError: If the body is not JSON.
            CatalogFormatError: If the JSON does not describe a catalog.
        """
        logger.info("Downloading catalog from %s", self.url)
        async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True) as client:
            response = await client.get(self.url)
            response.raise_for_status()
        catalog = parse_catalog(json.loads(response.text))
        logger.info("Downloaded catalog with %d entries", len(catalog))
        return catalog

    def _store(self, catalog: Catalog) -> None:
        """Write a downloaded catalog to the cache directory.

        Errors are logged but do not interrupt loading.
        """
        try:
            if self.cache_path is None:
                ensure_cache_dir()
                path = get_cached_catalog_path()
            else:
                self.cache_path.parent.mkdir(parents=True, exist_ok=True)
                path = self.cache_path
            payload = [entry.model_dump(mode="json", by_alias=True) for entry in catalog.values()]
            path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        except (OSError, RuntimeError) as e:
            logger.warning("Failed to cache catalog: %s", e)
