import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page

from nextwatch.core.domain.document_snapshot import DocumentSnapshot
from nextwatch.core.domain.exceptions import SnapshotUnavailable
from nextwatch.core.interfaces.page_environment import (
    HistoryListener,
    MutationListener,
    PageEnvironment,
    RouterListener,
)
from nextwatch.core.interfaces.subscription import CallbackSubscription, Subscription
from nextwatch.environment.page_script import BINDING_NAME, INSTALL_SCRIPT, SNAPSHOT_SCRIPT


logger = logging.getLogger("nextwatch.playwright")


class PlaywrightPageEnvironment(PageEnvironment):
    """
    PageEnvironment over a Playwright async Page.

    The init script reports every page notification through an exposed
    binding together with a fresh snapshot, which is cached here; a background
    task also re-reads the snapshot on a fixed interval so polling sees
    changes that produced no notification (image decoding, runtime globals).
    Attach before the first navigation.
    """

    def __init__(self, page: Page, refresh_interval_ms: int = 100):
        self.page = page
        self.refresh_interval_ms = refresh_interval_ms
        self._snapshot = DocumentSnapshot()
        self._closed = False
        self._listeners: Dict[str, List[Callable[..., None]]] = {}
        self._refresh_task: Optional[asyncio.Task] = None

    @classmethod
    async def attach(cls, page: Page, refresh_interval_ms: int = 100) -> "PlaywrightPageEnvironment":
        environment = cls(page, refresh_interval_ms=refresh_interval_ms)
        await page.expose_binding(BINDING_NAME, environment._on_notify)
        await page.add_init_script(INSTALL_SCRIPT)
        page.on("close", environment._on_close)
        return environment

    # --- PageEnvironment ---

    def snapshot(self) -> DocumentSnapshot:
        if self._closed:
            raise SnapshotUnavailable("page closed")
        return self._snapshot

    def is_loading(self) -> bool:
        return self._snapshot.is_loading

    def current_location(self) -> str:
        return self._snapshot.location

    def on_dom_ready(self, listener: Callable[[], None]) -> Subscription:
        return self._add("domready", listener)

    def on_load(self, listener: Callable[[], None]) -> Subscription:
        return self._add("load", listener)

    def observe_mutations(self, listener: MutationListener) -> Subscription:
        return self._add("mutation", listener)

    def on_router_event(self, listener: RouterListener) -> Subscription:
        return self._add("router", listener)

    def on_popstate(self, listener: Callable[[], None]) -> Subscription:
        return self._add("popstate", listener)

    def on_history_change(self, listener: HistoryListener) -> Subscription:
        return self._add("history", listener)

    # --- Snapshot refresh ---

    async def refresh(self) -> DocumentSnapshot:
        try:
            payload = await self.page.evaluate(SNAPSHOT_SCRIPT)
        except PlaywrightError as exc:
            # Navigation in flight destroys the execution context; keep the last snapshot.
            logger.debug("Snapshot refresh failed: %s", exc)
            return self._snapshot
        if payload:
            self._snapshot = DocumentSnapshot.from_dict(payload)
        return self._snapshot

    def start_refreshing(self) -> None:
        if self._refresh_task is None:
            self._refresh_task = asyncio.get_running_loop().create_task(self._refresh_loop())

    async def _refresh_loop(self) -> None:
        while not self._closed:
            await self.refresh()
            await asyncio.sleep(self.refresh_interval_ms / 1000.0)

    async def close(self) -> None:
        self._closed = True
        if self._refresh_task is not None:
            self._refresh_task.cancel()
            try:
                await self._refresh_task
            except asyncio.CancelledError:
                pass
            self._refresh_task = None

    # --- Binding ---

    def _on_notify(self, source: Any, kind: str, detail: Any = None, payload: Optional[dict] = None) -> None:
        if payload:
            self._snapshot = DocumentSnapshot.from_dict(payload)

        if kind == "mutation":
            self._fire("mutation", int(detail or 1))
        elif kind == "router" and isinstance(detail, (list, tuple)) and len(detail) == 2:
            self._fire("router", str(detail[0]), str(detail[1] or ""))
        elif kind == "history":
            self._fire("history", str(detail))
        elif kind in ("domready", "load", "popstate"):
            self._fire(kind)
        # "paint" only refreshes the cached snapshot.

    def _on_close(self, page: Any = None) -> None:
        self._closed = True
        if self._refresh_task is not None:
            self._refresh_task.cancel()

    def _add(self, kind: str, listener: Callable[..., None]) -> Subscription:
        listeners = self._listeners.setdefault(kind, [])
        listeners.append(listener)

        def _remove():
            if listener in listeners:
                listeners.remove(listener)

        return CallbackSubscription(_remove)

    def _fire(self, kind: str, *args: Any) -> None:
        for listener in list(self._listeners.get(kind, [])):
            listener(*args)
