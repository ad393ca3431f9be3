from __future__ import annotations

from contextlib import asynccontextmanager
import logging

from fastapi import Depends, FastAPI

from welfare.db import filters as _filters  # noqa: F401  (register the scoping hook)
from welfare.db.init_db import init_db
from welfare.logging_config import configure_app_logging
from welfare.routers import admin, applications, beneficiaries, finance, health, me, programs
from welfare.security.config import load_security_config
from welfare.security.dependencies import enforce_security
from welfare.settings import get_settings

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        settings = get_settings()
        configure_app_logging(settings.log_level)
        logger.info("App startup beginning")

        app.state.security_config = load_security_config(settings.resolved_security_config_path())
        logger.info(
            "Loaded security config: %s policy=%s",
            settings.resolved_security_config_path(),
            app.state.security_config.policy,
        )
        init_db(seed=settings.seed_demo_data)
        logger.info("Database initialized (tables ensured + seed if needed)")

        yield

    # Global dependency: every route is authenticated and scoped without per-handler code.
    app = FastAPI(title="Welfare Scheme Administration", dependencies=[Depends(enforce_security)], lifespan=lifespan)

    app.include_router(health.router)
    app.include_router(me.router)
    app.include_router(applications.router)
    app.include_router(beneficiaries.router)
    app.include_router(programs.router)
    app.include_router(finance.router)
    app.include_router(admin.router)

    return app


app = create_app()
