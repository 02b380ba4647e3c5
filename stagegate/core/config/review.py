from __future__ import annotations

import typing as t

import annotated_types as ant
import pydantic as p

from .base import BaseSettings


class CriterionSettings(BaseSettings):
    criterion_id: str = p.Field(alias="id")
    name: str
    weight: t.Annotated[int, ant.Ge(1), ant.Le(100)]
    description: str = ""
    excellent: str = ""
    average: str = ""
    poor: str = ""


class ReviewSettings(BaseSettings):
    """Review policy: the criteria catalog and comment rules."""

    criteria: list[CriterionSettings]
    min_comment_length: t.Annotated[int, ant.Ge(0)] = 10
    # what assigning an already-assigned reviewer does: skip them, or raise AlreadyAssigned
    duplicate_assignment: t.Literal["skip", "reject"] = "skip"

    @p.model_validator(mode="after")
    def check_catalog(self) -> t.Self:
        # imported here to keep settings importable without the review package
        from stagegate.review.catalog import check_criteria

        check_criteria([(c.criterion_id, c.weight) for c in self.criteria])
        return self
