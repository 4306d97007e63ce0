"""Watch a Next.js page in a real browser and print readiness events.

Usage:
    nextwatch https://example.com --timeout 20000 --wait-routes 2

Exit status is 0 once the ready event fired, 2 when detection gave up
without one.
"""
import argparse
import asyncio
import json
import logging
import sys
from typing import Any, Dict, List, Optional

import uvicorn
from playwright.async_api import async_playwright

from nextwatch.api.control_api import create_control_app
from nextwatch.config.settings import ObserverConfig
from nextwatch.core.domain.events import EVENT_NAMES, READY, ROUTE_AFTER_LOAD
from nextwatch.core.observability.event_bus import EventBus
from nextwatch.core.observability.jsonl_event_sink import JsonlEventSink
from nextwatch.core.observability.structured_logger import StructuredObserverLogger
from nextwatch.core.services.next_observer import NextObserver
from nextwatch.core.time.asyncio_scheduler import AsyncioScheduler
from nextwatch.environment.playwright_environment import PlaywrightPageEnvironment

EXIT_READY = 0
EXIT_NOT_READY = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="nextwatch", description="Detect when a Next.js page is ready.")
    parser.add_argument("url")
    parser.add_argument("--timeout", type=int, help="overall detection ceiling (ms)")
    parser.add_argument("--check-interval", type=int, help="poll cadence (ms)")
    parser.add_argument("--min-content-check", type=int, help="qualifying content containers")
    parser.add_argument("--route-load-timeout", type=int, help="per-navigation ceiling (ms)")
    parser.add_argument("--no-route-detection", action="store_true", help="ignore client-side navigation")
    parser.add_argument("--quiet", action="store_true", help="disable milestone logging")
    parser.add_argument("--headed", action="store_true", help="show the browser window")
    parser.add_argument("--wait-routes", type=int, default=0, help="after ready, wait for N route loads")
    parser.add_argument("--events-file", help="append published events to this JSONL file")
    parser.add_argument("--control-port", type=int, help="serve the control API on this port")
    return parser


def config_from_args(args: argparse.Namespace) -> ObserverConfig:
    options: Dict[str, Any] = {
        "timeout": args.timeout,
        "checkInterval": args.check_interval,
        "minContentCheck": args.min_content_check,
        "routeLoadTimeout": args.route_load_timeout,
    }
    if args.no_route_detection:
        options["routeChangeDetection"] = False
    if args.quiet:
        options["debug"] = False
    return ObserverConfig.from_options(options)


async def _wait_for(event: asyncio.Event, timeout_s: float) -> bool:
    try:
        await asyncio.wait_for(event.wait(), timeout=timeout_s)
        return True
    except asyncio.TimeoutError:
        return False


async def run(args: argparse.Namespace) -> int:
    config = config_from_args(args)
    logger = StructuredObserverLogger(enabled=config.debug)
    bus = EventBus(logger)
    if args.events_file:
        bus.attach_sink(JsonlEventSink(args.events_file))

    ready = asyncio.Event()
    routes_done = asyncio.Event()
    route_loads: List[Any] = []

    def _print(name: str):
        def _handler(payload):
            print(json.dumps({"event": name, "detail": payload.to_dict()}), flush=True)
        return _handler

    for name in EVENT_NAMES:
        bus.subscribe(name, _print(name))
    bus.subscribe(READY, lambda _: ready.set())

    def _on_route_load(payload):
        route_loads.append(payload)
        if len(route_loads) >= args.wait_routes:
            routes_done.set()

    bus.subscribe(ROUTE_AFTER_LOAD, _on_route_load)

    server: Optional[uvicorn.Server] = None
    server_task: Optional[asyncio.Task] = None

    async with async_playwright() as p:
        browser = await p.chromium.launch(headless=not args.headed)
        try:
            page = await (await browser.new_context()).new_page()
            environment = await PlaywrightPageEnvironment.attach(page, refresh_interval_ms=config.check_interval_ms)

            await page.goto(args.url, wait_until="commit")
            await environment.refresh()
            observer = NextObserver(
                environment,
                config=config,
                scheduler=AsyncioScheduler(),
                event_bus=bus,
                logger=logger,
            )
            environment.start_refreshing()

            if args.control_port:
                app = create_control_app(observer.control)
                server = uvicorn.Server(uvicorn.Config(app, port=args.control_port, log_level="warning"))
                server_task = asyncio.get_running_loop().create_task(server.serve())

            # Small grace period past the observer's own ceiling.
            got_ready = await _wait_for(ready, config.timeout_ms / 1000.0 + 1.0)
            if got_ready and args.wait_routes > 0:
                await _wait_for(routes_done, args.wait_routes * config.route_load_timeout_ms / 1000.0 + 1.0)

            await environment.close()
            return EXIT_READY if got_ready else EXIT_NOT_READY
        finally:
            if server is not None:
                server.should_exit = True
                await server_task
            await browser.close()


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="[%(asctime)s] %(levelname)s: %(message)s", stream=sys.stderr)
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
