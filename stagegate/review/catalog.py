"""The weighted criteria every gate review is scored against.

Built once from configuration. Weights are integer percentages and must sum to
exactly 100, so a weighted score lands on the same 1-5 scale as the inputs.
"""

from __future__ import annotations

import collections
import logging
import typing as t

import pydantic as p

from stagegate.model import Criterion, Guidelines

logger = logging.getLogger(__name__)

TOTAL_WEIGHT = 100


class InvalidCatalog(ValueError):
    pass


def check_criteria(criteria: t.Sequence[tuple[str, int]]) -> None:
    """Raise InvalidCatalog unless the (criterion_id, weight) pairs form a valid catalog."""
    if not criteria:
        raise InvalidCatalog("catalog has no criteria")

    counts = collections.Counter(criterion_id for criterion_id, _ in criteria)
    duplicates = sorted(k for k, n in counts.items() if n > 1)
    if duplicates:
        raise InvalidCatalog(f"duplicate criteria: {', '.join(duplicates)}")

    total = sum(weight for _, weight in criteria)
    if total != TOTAL_WEIGHT:
        raise InvalidCatalog(f"criteria weights sum to {total}, expected {TOTAL_WEIGHT}")


class CriteriaCatalog(object):
    def __init__(self, criteria: t.Iterable[Criterion]):
        self._criteria = tuple(criteria)
        check_criteria([(c.criterion_id, c.weight) for c in self._criteria])
        self._by_id = {c.criterion_id: c for c in self._criteria}

    @classmethod
    def from_settings(cls, criteria: t.Iterable[t.Mapping[str, t.Any]]) -> CriteriaCatalog:
        """Build from the `review.criteria` configuration entries."""
        try:
            catalog = cls(
                Criterion(
                    criterion_id=c["id"],
                    name=c["name"],
                    weight=c["weight"],
                    description=c.get("description") or "",
                    guidelines=Guidelines(
                        excellent=c.get("excellent") or "",
                        average=c.get("average") or "",
                        poor=c.get("poor") or "",
                    ),
                )
                for c in criteria
            )
        except (KeyError, p.ValidationError) as e:
            raise InvalidCatalog(f"malformed criterion: {e}") from e
        logger.debug("loaded criteria catalog", extra={"criteria": catalog.weights})
        return catalog

    def list_criteria(self) -> tuple[Criterion, ...]:
        return self._criteria

    def get(self, criterion_id: str) -> Criterion | None:
        return self._by_id.get(criterion_id)

    @property
    def weights(self) -> dict[str, int]:
        return {c.criterion_id: c.weight for c in self._criteria}

    def __contains__(self, criterion_id: object) -> bool:
        return criterion_id in self._by_id

    def __iter__(self) -> t.Iterator[Criterion]:
        return iter(self._criteria)

    def __len__(self) -> int:
        return len(self._criteria)
