from collections.abc import Iterable, Iterator

from .brew_types import CatalogEntry, PackageSummary


class PackageCatalog:
    """Holds the package rows currently shown to the user.

    Views address rows by position while brew commands need names, so the catalog
    keeps an index -> name projection. The projection is rebuilt wholesale after
    every mutation; it is never patched in place.

    Only the caller (GUI) thread may mutate a catalog.
    """

    def __init__(self, summaries: Iterable[PackageSummary] = ()) -> None:
        self._rows: list[PackageSummary] = []
        self._entries: tuple[CatalogEntry, ...] = ()
        self._name_to_index: dict[str, int] = {}
        self._checked: set[str] = set()
        self.replace(summaries)

    def __len__(self) -> int:
        return len(self._rows)

    def __iter__(self) -> Iterator[PackageSummary]:
        return iter(list(self._rows))

    def replace(self, summaries: Iterable[PackageSummary]) -> tuple[CatalogEntry, ...]:
        """Replaces the whole snapshot and returns the new index mapping.

        Check marks survive only for names still present.
        """
        self._rows = list(summaries)
        return self._rebuild()

    def _rebuild(self) -> tuple[CatalogEntry, ...]:
        entries = tuple(
            CatalogEntry(index=i, name=row.name) for i, row in enumerate(self._rows)
        )
        name_to_index: dict[str, int] = {}
        for entry in entries:
            name_to_index.setdefault(entry.name, entry.index)

        self._entries = entries
        self._name_to_index = name_to_index
        self._checked &= set(name_to_index)
        return entries

    @property
    def entries(self) -> tuple[CatalogEntry, ...]:
        return self._entries

    def resolve(self, index: int) -> str | None:
        """Returns the name displayed at `index`, or None if out of range."""
        if 0 <= index < len(self._entries):
            return self._entries[index].name
        return None

    def summary_at(self, index: int) -> PackageSummary | None:
        if 0 <= index < len(self._rows):
            return self._rows[index]
        return None

    def index_of(self, name: str) -> int | None:
        return self._name_to_index.get(name)

    def names(self) -> list[str]:
        return [entry.name for entry in self._entries]

    def summaries(self) -> list[PackageSummary]:
        return list(self._rows)

    def remove_by_index(self, index: int) -> PackageSummary | None:
        """Removes the row at `index`; every later row shifts up by one."""
        if not 0 <= index < len(self._rows):
            return None
        removed = self._rows.pop(index)
        self._rebuild()
        return removed

    def remove_by_name(self, name: str) -> PackageSummary | None:
        index = self.index_of(name)
        if index is None:
            return None
        return self.remove_by_index(index)

    # ---- Check marks (e.g. "upgrade selected")
    def set_checked(self, index: int, checked: bool) -> bool:
        name = self.resolve(index)
        if name is None:
            return False
        if checked:
            self._checked.add(name)
        else:
            self._checked.discard(name)
        return True

    def is_checked(self, index: int) -> bool:
        name = self.resolve(index)
        return name is not None and name in self._checked

    def checked_names(self) -> list[str]:
        """Returns checked names in display order."""
        return [entry.name for entry in self._entries if entry.name in self._checked]
