"""Filter engine for the package view.

The filtered view is never patched incrementally: it is recomputed from
the active user's rows whenever a filter, the active user, or a package
state changes.
"""

from collections.abc import Sequence
from dataclasses import dataclass, field

from debloatctl.models.package import CatalogList, PackageRow, PackageState, Removal


@dataclass(slots=True)
class FilterState:
    """Four independent predicates over package rows.

    Each enum predicate uses its ``ALL`` member to mean "ignore me";
    an empty search string matches every name.

    Attributes:
        search: Case-sensitive substring the package name must contain.
        catalog_list: Required catalog list membership.
        state: Required package state.
        removal: Required removal classification.
    """

    search: str = field(default="")
    catalog_list: CatalogList = field(default=CatalogList.ALL)
    state: PackageState = field(default=PackageState.ALL)
    removal: Removal = field(default=Removal.ALL)

    def matches(self, row: PackageRow) -> bool:
        """Check a row against the conjunction of all predicates."""
        return (
            (self.catalog_list == CatalogList.ALL or row.catalog_list == self.catalog_list)
            and (self.state == PackageState.ALL or row.state == self.state)
            and (self.removal == Removal.ALL or row.removal == self.removal)
            and (not self.search or self.search in row.name)
        )

    @property
    def is_default(self) -> bool:
        """Check if no predicate narrows the view."""
        return self == FilterState()


def recompute(rows: Sequence[PackageRow], filters: FilterState) -> list[int]:
    """Return the indices of the rows that pass every filter.

    The result preserves table order.

    Args:
        rows: Rows of the active user.
        filters: Current filter state.

    Returns:
        Ordered row indices.
    """
    return [i for i, row in enumerate(rows) if filters.matches(row)]
