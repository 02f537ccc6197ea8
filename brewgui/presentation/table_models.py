from PySide6.QtCore import QAbstractTableModel, QModelIndex, QPersistentModelIndex, Qt

from brewgui.core.brew_types import PackageSummary
from brewgui.core.package_catalog import PackageCatalog


class PackageTableModel(QAbstractTableModel):
    """Table model backed by a `PackageCatalog`.

    Rows are catalog positions, so `catalog.resolve(row)` always names the
    package under the cursor. Call `reload()` after every catalog mutation.
    """

    _HEADERS = ("Name", "Version", "Description", "Installed")

    def __init__(self, catalog: PackageCatalog, parent=None) -> None:
        super().__init__(parent)
        self._catalog = catalog

    @property
    def catalog(self) -> PackageCatalog:
        return self._catalog

    def rowCount(
        self,
        /,
        parent: QModelIndex | QPersistentModelIndex = QModelIndex(),
    ) -> int:
        if parent.isValid():
            return 0
        return len(self._catalog)

    def columnCount(
        self,
        /,
        parent: QModelIndex | QPersistentModelIndex = QModelIndex(),
    ) -> int:
        if parent.isValid():
            return 0
        return len(self._HEADERS)

    def data(
        self,
        index: QModelIndex | QPersistentModelIndex,
        /,
        role: int = Qt.ItemDataRole.DisplayRole,
    ) -> object | None:
        if not index.isValid():
            return None
        if role not in (Qt.ItemDataRole.DisplayRole, Qt.ItemDataRole.EditRole):
            return None

        row = self._catalog.summary_at(index.row())
        if row is None:
            return None
        column = index.column()
        if column == 0:
            return row.name
        if column == 1:
            return row.version or ""
        if column == 2:
            return row.description or ""
        if column == 3:
            return "yes" if row.installed else ""
        return None

    def headerData(
        self,
        section: int,
        orientation: Qt.Orientation,
        role: int = Qt.ItemDataRole.DisplayRole,
    ):
        if role != Qt.ItemDataRole.DisplayRole:
            return None
        if orientation != Qt.Orientation.Horizontal:
            return None
        if 0 <= section < len(self._HEADERS):
            return self._HEADERS[section]
        return None

    def reload(self) -> None:
        self.beginResetModel()
        self.endResetModel()

    def summary_at(self, row: int) -> PackageSummary | None:
        return self._catalog.summary_at(row)


class OutdatedTableModel(PackageTableModel):
    """Outdated formulae with a check box per row for batch upgrades."""

    _HEADERS = ("Name",)

    def data(
        self,
        index: QModelIndex | QPersistentModelIndex,
        /,
        role: int = Qt.ItemDataRole.DisplayRole,
    ) -> object | None:
        if not index.isValid() or index.column() != 0:
            return None
        if role == Qt.ItemDataRole.CheckStateRole:
            if self._catalog.is_checked(index.row()):
                return Qt.CheckState.Checked
            return Qt.CheckState.Unchecked
        return super().data(index, role)

    def flags(self, index: QModelIndex | QPersistentModelIndex) -> Qt.ItemFlag:
        if not index.isValid():
            return Qt.ItemFlag.NoItemFlags
        return super().flags(index) | Qt.ItemFlag.ItemIsUserCheckable

    def setData(
        self,
        index: QModelIndex | QPersistentModelIndex,
        value: object,
        /,
        role: int = Qt.ItemDataRole.EditRole,
    ) -> bool:
        if not index.isValid() or role != Qt.ItemDataRole.CheckStateRole:
            return False
        checked = value in (Qt.CheckState.Checked, Qt.CheckState.Checked.value)
        if not self._catalog.set_checked(index.row(), checked):
            return False
        self.dataChanged.emit(index, index, [Qt.ItemDataRole.CheckStateRole])
        return True
