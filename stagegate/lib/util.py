import decimal
import typing as t
from collections.abc import Mapping

KT = t.TypeVar("KT")
VT = t.TypeVar("VT")
RecursiveMapping = VT | Mapping[KT, "RecursiveMapping[KT, VT]"]

TWO_PLACES = decimal.Decimal("0.01")


def deep_update(
    d1: dict[KT, RecursiveMapping[KT, VT]], d2: Mapping[KT, RecursiveMapping[KT, VT]]
) -> dict[KT, RecursiveMapping[KT, VT]]:
    result = d1.copy()
    for k, v in d2.items():
        if isinstance(v, Mapping) and k in result and isinstance(result[k], Mapping):
            result[k] = deep_update(result[k], v)  # type: ignore
        else:
            result[k] = v
    return result


def round2(value: decimal.Decimal | float | int | str | None) -> decimal.Decimal:
    """Round half-up to two places; None is treated as zero."""
    if value is None:
        return decimal.Decimal("0.00")
    if not isinstance(value, decimal.Decimal):
        value = decimal.Decimal(str(value))
    return value.quantize(TWO_PLACES, rounding=decimal.ROUND_HALF_UP)
