"""Unit tests for Rich formatting helpers."""

from debloatctl.models.package import CatalogList, PackageRow, PackageState, Removal
from debloatctl.utils.formatting import create_package_table, format_package_row


class TestCreatePackageTable:
    """Tests for create_package_table function."""

    def test_columns(self) -> None:
        """Table has a marker column followed by the package fields."""
        table = create_package_table(title="Pixel 7 (user 0)")

        assert table.title == "Pixel 7 (user 0)"
        assert [col.header for col in table.columns] == [
            "",
            "Package",
            "State",
            "List",
            "Removal",
            "Description",
        ]


class TestFormatPackageRow:
    """Tests for format_package_row function."""

    def test_styles_state_and_removal(self) -> None:
        """State and removal use their own theme styles."""
        row = PackageRow(
            name="com.facebook.katana",
            state=PackageState.UNINSTALLED,
            description="Facebook app",
            catalog_list=CatalogList.MISC,
            removal=Removal.RECOMMENDED,
        )

        marker, name, state, catalog_list, removal, description = format_package_row(row)

        assert marker == "[muted]○[/]"
        assert "com.facebook.katana" in name
        assert state == "[state.uninstalled]uninstalled[/]"
        assert catalog_list == "misc"
        assert removal == "[removal.recommended]recommended[/]"
        assert description == "[text]Facebook app[/]"

    def test_selected_marker(self) -> None:
        """Selected rows get a filled marker."""
        row = PackageRow(name="com.android.chrome", state=PackageState.ENABLED, selected=True)

        assert format_package_row(row)[0] == "[success]●[/]"

    def test_first_description_line(self) -> None:
        """Only the first line of a long description is shown."""
        row = PackageRow(
            name="com.android.chrome",
            state=PackageState.ENABLED,
            description="Chrome browser\nSafe to remove if another browser is installed.",
        )

        assert format_package_row(row)[5] == "[text]Chrome browser[/]"

    def test_blank_description(self) -> None:
        """A blank description shows a dash."""
        row = PackageRow(name="com.android.chrome", state=PackageState.ENABLED, description=" ")

        assert format_package_row(row)[5] == "[text]-[/]"
