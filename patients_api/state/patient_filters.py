"""
Patient list filter state.

Holds the search term and status filter the dashboard components share
during a session. Nothing here is persisted; the list query never reads
this state implicitly, callers pass ``store.to_filters()`` explicitly.
"""

from typing import Callable, Dict, List

from patients_api.schemas.patient_schemas import PatientFilters


FilterListener = Callable[[PatientFilters], None]


class PatientFilterStore:
    """In-memory ``{search_term, status_filter}`` store with change listeners."""

    def __init__(self):
        self.search_term: str = ""
        self.status_filter: str = ""
        self._listeners: List[FilterListener] = []

    def set_search_term(self, term: str) -> None:
        self.search_term = term
        self._notify()

    def set_status_filter(self, status: str) -> None:
        self.status_filter = status
        self._notify()

    def clear_filters(self) -> None:
        self.search_term = ""
        self.status_filter = ""
        self._notify()

    def to_filters(self) -> PatientFilters:
        return PatientFilters(
            search_term=self.search_term, status_filter=self.status_filter
        )

    def subscribe(self, listener: FilterListener) -> Callable[[], None]:
        """Call ``listener`` with a snapshot after every change."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        snapshot = self.to_filters()
        for listener in list(self._listeners):
            listener(snapshot)


class FilterStoreRegistry:
    """One ``PatientFilterStore`` per session key."""

    def __init__(self):
        self._stores: Dict[str, PatientFilterStore] = {}

    def get(self, session_key: str) -> PatientFilterStore:
        if session_key not in self._stores:
            self._stores[session_key] = PatientFilterStore()
        return self._stores[session_key]

    def discard(self, session_key: str) -> None:
        self._stores.pop(session_key, None)

    def __len__(self) -> int:
        return len(self._stores)
