"""
Entry point wiring all components.
"""

from __future__ import annotations

import asyncio
import json
import logging
import signal
import sys

from lpbot.app import bootstrap
from lpbot.config.config import Settings
from lpbot.core.errors import BootstrapError
from lpbot.infra.logging_cfg import build_logger
from lpbot.monitoring.metrics import start_metrics_server

log = logging.getLogger("lpbot")


async def main() -> int:
    try:
        cfg = Settings.load()
    except ValueError as exc:
        build_logger("lpbot", file_path=None).error(json.dumps({"event": "config_invalid", "err": str(exc)}))
        return 1

    build_logger(
        "lpbot",
        level=getattr(logging, cfg.log_level),
        file_path=cfg.log_file,
        json_console=cfg.log_json_console,
    )
    log.info(json.dumps({"event": "settings", **cfg.dump()}))

    try:
        runtime = await bootstrap(cfg)
    except BootstrapError as exc:
        log.error(json.dumps({"event": "bootstrap_failed", "err": str(exc)}))
        return 1

    srv = None
    if cfg.metrics_port:
        srv = await start_metrics_server(runtime.scheduler.metrics, cfg.metrics_port)

    loop = asyncio.get_running_loop()
    run_task = asyncio.create_task(runtime.scheduler.run())

    def stop_all() -> None:
        # Cancel the in-flight cycle; pair tasks unwind without persisting state
        if not run_task.done():
            run_task.cancel()

    # Windows doesn't support add_signal_handler, so rely on KeyboardInterrupt handling
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_all)
        except NotImplementedError:
            pass

    try:
        await run_task
    except asyncio.CancelledError:
        log.info("Shutdown signal received, cleaning up...")
    finally:
        if srv is not None:
            srv.close()
            await srv.wait_closed()
        await runtime.aclose()
        log.info("Shutdown complete")
    return 0


def run() -> None:
    try:
        code = asyncio.run(main())
    except KeyboardInterrupt:
        print("\nBot stopped by user")
        code = 0
    sys.exit(code)


if __name__ == "__main__":
    run()
