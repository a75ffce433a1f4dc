"""Application bootstrap for the kustomap REST service.

Startup order: config -> logging -> resolver (HTTP client, provider clients,
content cache) -> scanner -> REST

Shutdown stops components in reverse startup order. Each stop is wrapped
independently so one failing teardown does not block the others.
"""

from __future__ import annotations

import asyncio
import signal
from typing import TYPE_CHECKING

from kustomap.config import load_config
from kustomap.models.config import KustomapConfig
from kustomap.observability.logging import get_logger, setup_logging

if TYPE_CHECKING:
    import structlog
    import uvicorn

    from kustomap.scanner import KustomizationScanner
    from kustomap.sources.resolver import RemoteResolver

_SHUTDOWN_GRACE_SECONDS = 15


class _ComponentError(Exception):
    """Raised when a mandatory component fails to start."""

    def __init__(self, component: str, cause: Exception) -> None:
        super().__init__(f"Component '{component}' failed to start: {cause}")
        self.component = component
        self.cause = cause


class KustomapApp:
    """Application root. Owns every component and coordinates their lifecycle.

    ``stop()`` is safe on an app that was never started or already stopped.
    """

    def __init__(self, config: KustomapConfig | None = None) -> None:
        self.config = config
        self._resolver: RemoteResolver | None = None
        self._scanner: KustomizationScanner | None = None
        self._rest_server: uvicorn.Server | None = None
        self._rest_task: asyncio.Task[None] | None = None
        self._running = False
        self._log: structlog.stdlib.BoundLogger | None = None

    @property
    def running(self) -> bool:
        return self._running

    # ------------------------------------------------------------------
    # Startup
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Start all components in dependency order.

        Raises _ComponentError if a component cannot start.
        """
        # --- 1. Configuration -------------------------------------------
        if self.config is None:
            try:
                self.config = load_config()
            except ValueError as exc:
                raise _ComponentError("config", exc) from exc

        # --- 2. Logging -------------------------------------------------
        setup_logging(self.config.log.level)
        self._log = get_logger("app")
        self._log.info("kustomap_starting", version=_kustomap_version())

        # --- 3. Resolver and scanner ------------------------------------
        self._start_scanner()

        # --- 4. REST API ------------------------------------------------
        await self._start_rest()

        self._running = True
        self._log.info("kustomap_started", port=self.config.api.port)

    def _start_scanner(self) -> None:
        assert self.config is not None
        try:
            from kustomap.scanner import KustomizationScanner
            from kustomap.sources.resolver import RemoteResolver

            self._resolver = RemoteResolver(self.config)
            self._scanner = KustomizationScanner(self.config, resolver=self._resolver)
        except Exception as exc:
            raise _ComponentError("scanner", exc) from exc

    async def _start_rest(self) -> None:
        """Start the uvicorn REST server."""
        assert self._log is not None
        assert self.config is not None
        assert self._scanner is not None
        try:
            import uvicorn

            from kustomap.api import build_app

            fastapi_app = build_app(scanner=self._scanner, config=self.config)
            uv_config = uvicorn.Config(
                app=fastapi_app,
                host="0.0.0.0",
                port=self.config.api.port,
                log_config=None,
                access_log=False,
            )
            server = uvicorn.Server(uv_config)
            self._rest_task = asyncio.create_task(server.serve(), name="rest-server")
            self._rest_server = server
            self._log.info("rest_api_started", port=self.config.api.port)
        except Exception as exc:
            raise _ComponentError("rest", exc) from exc

    # ------------------------------------------------------------------
    # Shutdown
    # ------------------------------------------------------------------

    async def stop(self) -> None:
        """Gracefully stop all components in reverse startup order."""
        if not self._running and self._log is None:
            return

        log = self._log or get_logger("app")
        log.info("kustomap_shutting_down")
        self._running = False

        await self._stop_rest()
        if self._scanner is not None:
            try:
                await asyncio.wait_for(self._scanner.aclose(), timeout=_SHUTDOWN_GRACE_SECONDS)
            except TimeoutError:
                log.warning("component_stop_timed_out", component="scanner")
            except Exception as exc:
                log.error("component_stop_failed", component="scanner", error=str(exc))
        self._scanner = None
        self._resolver = None

        log.info("kustomap_stopped")

    async def _stop_rest(self) -> None:
        if self._rest_server is None or self._rest_task is None:
            return
        log = self._log or get_logger("app")
        self._rest_server.should_exit = True
        try:
            await asyncio.wait_for(self._rest_task, timeout=_SHUTDOWN_GRACE_SECONDS)
        except TimeoutError:
            log.warning("component_stop_timed_out", component="rest")
        except Exception as exc:
            log.error("component_stop_failed", component="rest", error=str(exc))
        self._rest_server = None
        self._rest_task = None

    async def wait(self) -> None:
        """Block until the REST server exits or shutdown is requested."""
        while self._running:
            if self._rest_task is not None and self._rest_task.done():
                break
            await asyncio.sleep(0.5)


def _kustomap_version() -> str:
    from kustomap import __version__

    return __version__


# ---------------------------------------------------------------------------
# Async entrypoint
# ---------------------------------------------------------------------------


async def main(config: KustomapConfig | None = None) -> None:
    """Create the app, register OS signals, run until shutdown is requested."""
    app = KustomapApp(config)
    loop = asyncio.get_running_loop()

    shutdown_triggered = False

    def _request_shutdown() -> None:
        nonlocal shutdown_triggered
        if shutdown_triggered:
            return
        shutdown_triggered = True
        asyncio.create_task(app.stop(), name="shutdown")

    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, _request_shutdown)

    try:
        await app.start()
        await app.wait()
    except _ComponentError as exc:
        log = get_logger("app")
        log.critical("fatal_startup_error", component=exc.component, error=str(exc.cause))
        await app.stop()
        raise SystemExit(1) from exc
    finally:
        if app.running:
            await app.stop()
