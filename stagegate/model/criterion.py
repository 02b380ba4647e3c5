from __future__ import annotations

import typing as t

import annotated_types as ant
import pydantic as p

from .base import BaseModel

Score = t.Annotated[int, ant.Ge(1), ant.Le(5)]


class Guidelines(BaseModel):
    """What a 5, a 3 and a 1 look like for a criterion."""

    model_config = p.ConfigDict(frozen=True)

    excellent: str = ""
    average: str = ""
    poor: str = ""

    def for_score(self, score: int) -> str:
        if score >= 4:
            return self.excellent
        if score >= 2:
            return self.average
        return self.poor


class Criterion(BaseModel):
    model_config = p.ConfigDict(frozen=True)

    criterion_id: str
    name: str
    weight: t.Annotated[int, ant.Ge(1), ant.Le(100)]
    description: str = ""
    guidelines: Guidelines = Guidelines()


class ScoredCriterion(BaseModel):
    model_config = p.ConfigDict(frozen=True)

    criterion_id: str
    score: Score
