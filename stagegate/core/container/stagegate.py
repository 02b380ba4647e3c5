from __future__ import annotations

import datetime
import os
import sys
import types
from pathlib import Path

import pydantic as p
from dependency_injector.containers import DeclarativeContainer
from dependency_injector.providers import Configuration, Container, Object, Provider, Resource, Singleton

import stagegate
from stagegate.model import BaseModel, DeploymentEnvironment

from ..config import Secrets, Settings
from ..di import NotReady
from ..provider import LoggingProvider, TimestampProvider
from .auth import AuthContainer
from .notification import NotificationContainer
from .review import ReviewContainer
from .storage import StorageContainer
from .template import TemplateContainer


class BootConfiguration(BaseModel):
    debug: bool
    env: DeploymentEnvironment
    config_root: p.AnyUrl
    override: tuple[str, ...]


class StagegateContainer(DeclarativeContainer):
    config: Configuration = Configuration()
    secrets: Configuration = Configuration()

    debug: Provider[bool] = Singleton(bool)
    env: Provider[DeploymentEnvironment] = Singleton(DeploymentEnvironment)
    root: Object[NotReady | Path] = Object(NotReady())

    logging: Provider[LoggingProvider] = Resource(LoggingProvider, config=config.logging, debug=debug)
    storage: Provider[StorageContainer] = Container(
        StorageContainer, config=config.storage, secrets=secrets, logging=logging, root=root
    )
    template: Provider[TemplateContainer] = Container(TemplateContainer, config=config.template)
    review: Provider[ReviewContainer] = Container(ReviewContainer, config=config.review)
    notification: Provider[NotificationContainer] = Container(
        NotificationContainer,
        config=config.notification,
        secrets=secrets.notification,
        logging=logging,
        templates=template.email,
        public_url=config.web.stagegate.public_url,
    )
    auth: Provider[AuthContainer] = Container(
        AuthContainer,
        config=config.web.stagegate.auth,
        secrets=secrets.auth,
    )

    utcnow: Provider[TimestampProvider] = Object(lambda: datetime.datetime.now(datetime.UTC))

    _boot_config: Provider[BootConfiguration | NotReady] = Object(NotReady())

    @staticmethod
    def boot(
        ct: StagegateContainer,
        /,
        debug: bool,
        env: DeploymentEnvironment,
        config_root: p.AnyUrl,
        override: tuple[str, ...] | None = None,
        wiring: tuple[str | types.ModuleType, ...] | None = None,
    ):
        if config_root.scheme != "file":
            raise ValueError(f"unsupported scheme for config root: {config_root.scheme}")
        ps = Settings(env=env, root=config_root, override=override or ())
        ct.config.from_pydantic(ps)

        ct.debug.override(debug)
        ct.env.override(env)
        ct.root.override(Path(os.path.dirname(stagegate.__file__)).parent)
        ct.secrets.from_pydantic(Secrets(env=env, root=config_root))

        ct.wire(packages=["stagegate"])
        if wiring:
            ct.wire(modules=wiring)
        if imported := [mod for name, mod in sys.modules.items() if name.startswith("stagegate.")]:
            ct.wire(modules=imported)

        logger = ct.logging().get_logger()
        for ov in ps.override:
            k, v = ov.split("=", 1)
            logger.info(
                "overriding configuration parameter",
                extra={
                    "key": k,
                    "value": v,
                },
            )

        # fail fast on a bad criteria catalog
        catalog = ct.review().catalog()
        logger.debug(
            "configuration finished",
            extra={
                "config": str(config_root),
                "env": env.value,
                "criteria": [c.criterion_id for c in catalog.list_criteria()],
            },
        )
        ct._boot_config.override(
            BootConfiguration(debug=debug, env=env, config_root=config_root, override=override or ())
        )
