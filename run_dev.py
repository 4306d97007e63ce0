import asyncio
import logging
import json

from nextwatch.config.settings import ObserverConfig
from nextwatch.core.domain.document_snapshot import DocumentSnapshot, ImageInfo, PaintEntry
from nextwatch.core.domain.events import EVENT_NAMES
from nextwatch.core.observability.event_bus import EventBus
from nextwatch.core.services.next_observer import NextObserver
from nextwatch.core.time.asyncio_scheduler import AsyncioScheduler
from nextwatch.environment.in_memory_environment import InMemoryPageEnvironment


async def main():
    logging.basicConfig(level=logging.INFO, format="[%(asctime)s] %(levelname)s: %(message)s")
    print("Initializing DEV environment...")

    # 1. A page that has started parsing but rendered nothing yet
    page = InMemoryPageEnvironment(DocumentSnapshot(ready_state="loading", location="/"))

    # 2. Observer
    bus = EventBus()
    for name in EVENT_NAMES:
        bus.subscribe(name, lambda payload, name=name: print(f"EVENT {name}: {json.dumps(payload.to_dict())}"))

    observer = NextObserver(
        page,
        config=ObserverConfig(timeout_ms=3000, check_interval_ms=100),
        scheduler=AsyncioScheduler(),
        event_bus=bus,
    )

    # 3. Simulated bootstrap
    page.fire_dom_ready()
    await asyncio.sleep(0.2)
    page.mutate(
        records=12,
        script_sources=("https://example.com/_next/static/abc123/pages/index.js",),
        has_framework_data=True,
        body_child_count=1,
        container_text_lengths=(4,),
    )
    await asyncio.sleep(0.3)
    page.mutate(
        records=40,
        has_runtime=True,
        container_text_lengths=(120, 48, 33),
        images=(ImageInfo(True, 300), ImageInfo(False, 0)),
        paint_entries=(PaintEntry("first-paint", 210.0), PaintEntry("first-contentful-paint", 240.5)),
    )
    await asyncio.sleep(0.2)
    page.fire_load()
    await asyncio.sleep(0.2)

    # 4. Client-side navigation
    print("Navigating to /pricing ...")
    page.router_navigate("/pricing")
    await asyncio.sleep(0.05)
    page.mutate(records=8, images=(ImageInfo(True, 300), ImageInfo(True, 180)))
    await asyncio.sleep(0.5)

    print(f"Ready emitted: {observer.ready_emitted}, route: {observer.get_current_route()}")
    print("Dev run complete.")


if __name__ == "__main__":
    asyncio.run(main())
