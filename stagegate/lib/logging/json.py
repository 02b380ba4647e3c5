import typing as t

from stagegate.lib.json import JSONEncoder as BaseJSONEncoder
from stagegate.lib.json import JSONValue


class JSONEncoder(BaseJSONEncoder):
    """Encoder for log extras: anything unknown is rendered with repr()."""

    def default(self, o: t.Any) -> JSONValue:
        try:
            return super().default(o)
        except TypeError:
            return repr(o)
