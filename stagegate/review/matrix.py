from __future__ import annotations

import decimal

from stagegate.lib.util import round2
from stagegate.model import Decision, Evaluation, ScoredCriterion

from .catalog import CriteriaCatalog
from .error import InvalidInput

MIN_SCORE = 1
MAX_SCORE = 5


class EvaluationMatrix(object):
    """One reviewer's scores, comments and decision while they are being edited.

    Scores are only ever stored in [MIN_SCORE, MAX_SCORE]; anything else is
    rejected with InvalidInput and the matrix is left as it was.
    """

    def __init__(self, catalog: CriteriaCatalog):
        self.catalog = catalog
        self._scores: dict[str, int] = {}
        self.comments = ""
        self.decision: Decision | None = None

    @classmethod
    def from_evaluation(cls, catalog: CriteriaCatalog, evaluation: Evaluation) -> EvaluationMatrix:
        """Reload a saved evaluation. Scores for criteria no longer in the catalog are dropped."""
        matrix = cls(catalog)
        for criterion_id, score in evaluation.scores.items():
            if criterion_id in catalog:
                matrix.set_score(criterion_id, score)
        matrix.set_comments(evaluation.comments)
        matrix.set_decision(evaluation.decision)
        return matrix

    def set_score(self, criterion_id: str, score: int) -> None:
        if criterion_id not in self.catalog:
            raise InvalidInput(f"unknown criterion: {criterion_id}")
        # bool is an int subclass, but True is not a score
        if isinstance(score, bool) or not isinstance(score, int):
            raise InvalidInput(f"score for {criterion_id} must be an integer, got {score!r}")
        if not MIN_SCORE <= score <= MAX_SCORE:
            raise InvalidInput(f"score for {criterion_id} must be between {MIN_SCORE} and {MAX_SCORE}, got {score}")
        self._scores[criterion_id] = score

    def clear_score(self, criterion_id: str) -> None:
        self._scores.pop(criterion_id, None)

    def set_comments(self, text: str | None) -> None:
        self.comments = text or ""

    def set_decision(self, decision: Decision | None) -> None:
        self.decision = decision

    @property
    def scores(self) -> dict[str, int]:
        """Scores in catalog order."""
        return {c.criterion_id: self._scores[c.criterion_id] for c in self.catalog if c.criterion_id in self._scores}

    def scored_criteria(self) -> list[ScoredCriterion]:
        return [ScoredCriterion(criterion_id=k, score=v) for k, v in self.scores.items()]

    def unscored(self) -> list[str]:
        """Names of catalog criteria without a score, in catalog order."""
        return [c.name for c in self.catalog if c.criterion_id not in self._scores]

    def compute_weighted_score(self) -> decimal.Decimal:
        total = decimal.Decimal(0)
        for criterion in self.catalog:
            score = self._scores.get(criterion.criterion_id)
            if score is not None:
                total += score * criterion.weight
        return round2(total / 100)

    def compute_total_score(self) -> decimal.Decimal:
        # weights sum to 100, so the weighted score is already on the 1-5 scale
        return self.compute_weighted_score()
