import logging

from fastapi import FastAPI

from taxyield import __version__
from taxyield.api.http import router
from taxyield.config import get_settings
from taxyield.lifespan import build_application_lifespan

logger = logging.getLogger("taxyield")


async def _announce(_: FastAPI) -> None:
    settings = get_settings()
    logger.info(
        "taxyield API ready; version=%s sha=%s log_level=%s",
        settings.build_version,
        settings.build_sha,
        settings.log_level,
    )


app = FastAPI(
    title="taxyield",
    description="After-tax outcome and break-even yield modelling across jurisdictions.",
    version=__version__,
    lifespan=build_application_lifespan("api", startup_hook=_announce),
)
app.include_router(router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
