from typing import Dict, Mapping, Optional

ALL_SOURCES = "[ALL_SOURCES]"


class SourceGroupRegistry:
    """Peta statis dari nama source ke analysis group."""

    def __init__(self, assignments: Optional[Mapping[str, str]] = None):
        self._groups: Dict[str, str] = dict(assignments or {})

    def assign(self, source: str, group: str) -> None:
        self._groups[source] = group

    def group_for(self, source: str) -> str:
        # Source tanpa group digabung ke group "semua source"
        return self._groups.get(source, ALL_SOURCES)

    def __len__(self) -> int:
        return len(self._groups)
