"""View models for the criteria catalog."""

from __future__ import annotations

import pydantic as p


class GuidelinesResponse(p.BaseModel):
    excellent: str
    average: str
    poor: str


class CriterionResponse(p.BaseModel):
    criterion_id: str
    name: str
    weight: int
    description: str
    guidelines: GuidelinesResponse


class CriteriaListResponse(p.BaseModel):
    criteria: list[CriterionResponse]
    total_weight: int
