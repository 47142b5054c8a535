from __future__ import annotations

import inspect
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncContextManager

from fastapi import FastAPI

from taxyield.config import Settings, get_settings
from taxyield.jurisdictions.dispatch import list_supported_jurisdictions

Hook = Callable[[FastAPI], Awaitable[None] | None]


def configure_logging(settings: Settings) -> logging.Logger:
    logger = logging.getLogger("taxyield")
    logger.setLevel(settings.log_level_value)
    return logger


def _open_telemetry_sink(logger: logging.Logger, settings: Settings, app_label: str) -> logging.Handler | None:
    if settings.telemetry_dir is None:
        return None
    logs_dir = Path(settings.telemetry_dir)
    try:
        logs_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        logger.warning("Unable to create telemetry directory %s: %s", logs_dir, exc)
        return None
    handler = logging.FileHandler(logs_dir / f"{app_label}.log", encoding="utf-8")
    handler.setLevel(settings.log_level_value)
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s - %(message)s"))
    logger.addHandler(handler)
    return handler


async def _invoke_hook(hook: Hook | None, app: FastAPI) -> None:
    if hook is None:
        return
    try:
        result = hook(app)
        if inspect.isawaitable(result):
            await result
    except Exception:  # pragma: no cover - hooks are user provided
        logging.getLogger("taxyield").exception("Application lifecycle hook failed")


def build_application_lifespan(
    app_label: str,
    *,
    startup_hook: Hook | None = None,
    shutdown_hook: Hook | None = None,
) -> Callable[[FastAPI], AsyncContextManager[None]]:
    @asynccontextmanager
    async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
        settings = get_settings()
        base_logger = configure_logging(settings)
        logger = base_logger.getChild(app_label)
        telemetry_handler = _open_telemetry_sink(base_logger, settings, app_label)
        jurisdictions = list_supported_jurisdictions()

        app.state.settings = settings
        app.state.jurisdictions = jurisdictions
        app.state.telemetry_handler = telemetry_handler
        app.state.app_label = app_label

        logger.info(
            "Startup complete: jurisdictions=%s grid_workers=%s build=%s",
            len(jurisdictions),
            settings.grid_workers,
            settings.build_version,
        )

        try:
            await _invoke_hook(startup_hook, app)
            yield
        finally:
            await _invoke_hook(shutdown_hook, app)
            if telemetry_handler is not None:
                base_logger.removeHandler(telemetry_handler)
                telemetry_handler.close()
            for attr in ("settings", "jurisdictions", "telemetry_handler", "app_label"):
                if hasattr(app.state, attr):
                    delattr(app.state, attr)
            logger.info("Shutdown complete")

    return _lifespan
