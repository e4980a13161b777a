"""
View refresh signalling.

Mutations announce which dashboard views hold stale data once they commit.
Anything that caches rendered lists (a response cache, a websocket fan-out,
a test) subscribes and drops or re-queries those views.
"""

from typing import Callable, List

from patients_api.core.utils import LoggerMixin


PATIENTS_LIST_PATH = "/dashboard/patients"

RefreshListener = Callable[[List[str]], None]


def patient_detail_path(patient_id) -> str:
    return f"{PATIENTS_LIST_PATH}/{patient_id}"


class ViewRefreshSignal(LoggerMixin):
    """In-process publish/subscribe hook for stale view paths."""

    def __init__(self):
        super().__init__()
        self._listeners: List[RefreshListener] = []

    def subscribe(self, listener: RefreshListener) -> Callable[[], None]:
        """Register ``listener``; returns a callable that removes it again."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def emit(self, *paths: str) -> None:
        stale = list(paths)
        self.log_debug({"event": "views_refreshed", "paths": stale})
        for listener in list(self._listeners):
            try:
                listener(stale)
            except Exception:
                # The mutation already committed; a broken listener must not undo that.
                self.log_error(
                    {"event": "view_refresh_listener_failed", "paths": stale},
                    exc_info=True,
                )

    def clear(self) -> None:
        self._listeners.clear()


view_refresh = ViewRefreshSignal()
