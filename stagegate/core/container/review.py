from __future__ import annotations

from dependency_injector.containers import DeclarativeContainer
from dependency_injector.providers import Configuration, Provider, Singleton

from stagegate.review.catalog import CriteriaCatalog


class ReviewContainer(DeclarativeContainer):
    config: Configuration = Configuration(strict=True)

    # built eagerly at boot so a bad catalog stops the process
    catalog: Provider[CriteriaCatalog] = Singleton(CriteriaCatalog.from_settings, config.criteria)
