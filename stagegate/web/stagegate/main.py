"""Main entry point for the Stagegate web application."""

import os
import typing as t
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from stagegate.core import BootConfiguration, di, StagegateContainer
from stagegate.core.config.web import StagegateWebSettings
from stagegate.model import DeploymentEnvironment

from . import error
from .route import router


@di.inject
def _create_app(
    config: StagegateWebSettings = di.Provide["config.web.stagegate", di.as_(StagegateWebSettings)],
    env: DeploymentEnvironment = di.Provide["env"],
    root_path: Path = di.Provide["root"],
) -> FastAPI:
    app = FastAPI(
        title="Stagegate",
        description="Stage-gate review workflow for innovation projects",
        version="0.1.0",
    )

    if env is DeploymentEnvironment.Local and config.frontend is not None:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=[
                f"http://{config.frontend.host}:{config.frontend.port}",
                f"http://localhost:{config.frontend.port}",
            ],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    error.install(app)
    app.include_router(router)
    return app


def create_app() -> FastAPI:
    """Factory function for uvicorn."""
    boot_vars = os.getenv("__Stagegate_BOOT")
    if boot_vars:
        boot_cf = BootConfiguration.model_validate_json(boot_vars)
        ct = StagegateContainer()
        StagegateContainer.boot(ct, **dict(boot_cf))
        ct.wire(modules=["stagegate.web.stagegate.main", "stagegate.auth.middleware"])
        return _create_app(
            config=StagegateWebSettings(**ct.config.web.stagegate()),
            env=boot_cf.env,
            root_path=t.cast(Path, ct.root()),
        )
    return _create_app()
