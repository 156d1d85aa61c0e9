from __future__ import annotations

import re
from typing import Iterable, List, Mapping, Optional, Tuple

from ..domain.errors import FetchError, PatternError
from ..domain.models import IGNORED_KINDS, Endpoint


_COST_RE = re.compile(r"(\d+\.\d+)x|(\d+)x")


def parse_cost_coefficient(name: str) -> float:
    # "HK 01 (1.5x)", "JP 2x", "US [0.5x]"
    m = _COST_RE.search(name or "")
    if not m:
        return 1.0
    try:
        value = float(m.group(1) or m.group(2))
    except (TypeError, ValueError):
        return 1.0
    return value if value > 0 else 1.0


def parse_directory(payload: Mapping, selector_name: str) -> Tuple[List[Endpoint], Optional[str]]:
    if not isinstance(payload, Mapping):
        raise FetchError(f"unexpected proxies payload: {type(payload).__name__}")
    proxies = payload.get("proxies")
    if not isinstance(proxies, Mapping):
        raise FetchError("proxies payload has no 'proxies' mapping")

    endpoints: List[Endpoint] = []
    active_name: Optional[str] = None
    for key, raw in proxies.items():
        if not isinstance(raw, Mapping):
            continue
        name = raw.get("name") or key
        kind = raw.get("type") or ""
        if name == selector_name:
            active_name = raw.get("now") or None
            continue
        if kind in IGNORED_KINDS:
            continue
        if not raw.get("alive", False):
            continue
        endpoints.append(
            Endpoint(
                name=name,
                kind=kind,
                reachable=True,
                cost=parse_cost_coefficient(name),
            )
        )
    return endpoints, active_name


def _compile(field_name: str, pattern: str) -> Optional[re.Pattern]:
    if not pattern:
        return None
    try:
        return re.compile(pattern)
    except re.error as exc:
        raise PatternError(field_name, pattern, str(exc)) from exc


class EndpointFilter:
    """Keeps endpoints whose name matches ``include`` and does not match ``exclude``.

    An empty include pattern admits every name; an empty exclude pattern
    rejects none.
    """

    def __init__(self, include: str = "", exclude: str = "") -> None:
        self._include = _compile("include", include)
        self._exclude = _compile("exclude", exclude)

    def matches(self, name: str) -> bool:
        if self._include is not None and not self._include.search(name):
            return False
        if self._exclude is not None and self._exclude.search(name):
            return False
        return True

    def apply(self, endpoints: Iterable[Endpoint]) -> List[Endpoint]:
        return [endpoint for endpoint in endpoints if self.matches(endpoint.name)]
