"""Catalog models.

The catalog is reference data, independent of any device, describing
which packages are safe to remove and which list they come from.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, field_validator

from debloatctl.models.package import CatalogList, Removal


class CatalogEntry(BaseModel):
    """A single catalog entry for one package identifier.

    Attributes:
        id: Android package identifier.
        catalog_list: Catalog list the package belongs to (``list`` in JSON).
        description: Human-readable description.
        dependencies: Packages this package depends on.
        needed_by: Packages that depend on this package.
        labels: Free-form tags.
        removal: Recommended-removal classification.
    """

    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)

    id: Annotated[str, Field(min_length=1, description="Package identifier")]
    catalog_list: Annotated[
        CatalogList,
        Field(alias="list", description="Catalog list membership"),
    ]
    description: Annotated[str, Field(description="Package description")] = ""
    dependencies: Annotated[list[str], Field(default_factory=list)]
    needed_by: Annotated[list[str], Field(default_factory=list, alias="neededBy")]
    labels: Annotated[list[str], Field(default_factory=list)]
    removal: Annotated[Removal, Field(description="Removal classification")]

    @field_validator("catalog_list", "removal", mode="before")
    @classmethod
    def normalize_enum(cls, v: object) -> object:
        """Accept enum values regardless of case."""
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @field_validator("catalog_list")
    @classmethod
    def reject_list_sentinel(cls, v: CatalogList) -> CatalogList:
        """A catalog entry cannot belong to the 'all' filter sentinel."""
        if v == CatalogList.ALL:
            msg = "list cannot be 'all'"
            raise ValueError(msg)
        return v

    @field_validator("removal")
    @classmethod
    def reject_removal_sentinel(cls, v: Removal) -> Removal:
        """A catalog entry cannot be classified with the 'all' sentinel."""
        if v == Removal.ALL:
            msg = "removal cannot be 'all'"
            raise ValueError(msg)
        return v


# Package identifier -> catalog entry
Catalog = dict[str, CatalogEntry]


class CatalogState(str, Enum):
    """Outcome of the latest catalog load.

    Attributes:
        DOWNLOADING: A load is in progress.
        DONE: The remote catalog was loaded.
        FAILED: The embedded fallback catalog is in use.
    """

    DOWNLOADING = "downloading"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class CatalogLoadResult:
    """Result of a catalog load.

    A load never fails hard: on error the embedded catalog is returned
    together with ``CatalogState.FAILED``.

    Attributes:
        catalog: Package identifier to catalog entry mapping.
        state: DONE for a remote catalog, FAILED for the fallback.
        error: Reason the remote catalog could not be used.
    """

    catalog: Catalog
    state: CatalogState
    error: str | None = None

    @property
    def degraded(self) -> bool:
        """Check if the fallback catalog is in use."""
        return self.state == CatalogState.FAILED
