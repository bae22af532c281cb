"""Ephemeris sources and request bookkeeping.

The simulation never waits for ephemeris data. It hands a source a list of
body names and a ``deliver`` callback; the source calls back on some later
host turn with an :class:`EphemerisResult`. Each request carries a generation
number so that results arriving after a reset, or after a newer request, can
be recognised and dropped.

Table format (JSON or Python mapping)::

    {
      "Earth": {"position": [x, y], "velocity": [vx, vy], "mass": 5.97e24, "radius": 6.371e6},
      "Moon": {"position": {"x": ..., "y": ...}, "velocity": {"x": ..., "y": ...}}
    }

Positions are meters, velocities meters per second; ``mass`` and ``radius``
are optional. A top-level ``{"bodies": {...}}`` wrapper is also accepted.
"""
from __future__ import annotations

import json
import logging
import re
from collections import deque
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Mapping, Optional, Protocol, Sequence

from .errors import EphemerisError

logger = logging.getLogger(__name__)

EphemerisTable = dict[str, dict[str, object]]

_SOE_RE = re.compile(r"\$\$SOE(.*?)\$\$EOE", re.DOTALL)
_RADIUS_RE = re.compile(
    r"mean\s+radius\s*(?:\(km\))?\s*=?\s*([0-9]+(?:\.[0-9]*)?)(?:\s*\+-\s*[0-9.]+)?\s*(?:km)?",
    re.IGNORECASE,
)
_MASS_RE = re.compile(
    r"mass,?\s*x\s*10\^\s*([+-]?[0-9]+)\s*\(kg\)\s*=\s*~?\s*([0-9]+(?:\.[0-9]*)?)",
    re.IGNORECASE,
)
KM = 1_000.0


@dataclass(frozen=True)
class EphemerisResult:
    """Outcome of one ephemeris request: a table or an error."""

    table: EphemerisTable = field(default_factory=dict)
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None


Deliver = Callable[[EphemerisResult], None]


class EphemerisSource(Protocol):
    def request(self, names: Sequence[str], deliver: Deliver) -> None:
        """Start fetching ``names``; call ``deliver`` later, exactly once."""


@dataclass(frozen=True)
class EphemerisRequest:
    generation: int
    names: tuple[str, ...]


class RequestTracker:
    """Tracks the single outstanding ephemeris request."""

    def __init__(self) -> None:
        self._generation = 0
        self._outstanding: Optional[EphemerisRequest] = None

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def outstanding(self) -> Optional[EphemerisRequest]:
        return self._outstanding

    def issue(self, names: Sequence[str]) -> EphemerisRequest:
        """Open a new request, superseding any one still in flight."""

        if self._outstanding is not None:
            logger.debug("Superseding ephemeris request %d", self._outstanding.generation)
        self._generation += 1
        self._outstanding = EphemerisRequest(self._generation, tuple(names))
        return self._outstanding

    def invalidate(self) -> None:
        self._generation += 1
        self._outstanding = None

    def accept(self, request: EphemerisRequest) -> bool:
        """Close ``request`` if it is still current; stale requests return ``False``."""

        if self._outstanding is None or request.generation != self._generation:
            return False
        self._outstanding = None
        return True


class TableEphemerisSource:
    """Serves ephemeris from an in-memory table.

    Requests are queued and answered on the next :meth:`pump`, which the host
    calls from its frame loop, so delivery always happens on a later turn than
    the request.
    """

    def __init__(self, table: Optional[Mapping[str, Mapping[str, object]]] = None) -> None:
        self._table: EphemerisTable = _normalise_table(table or {})
        self._pending: deque[tuple[tuple[str, ...], Deliver]] = deque()
        self._failure: Optional[BaseException] = None

    @property
    def pending(self) -> int:
        return len(self._pending)

    def update(self, table: Mapping[str, Mapping[str, object]]) -> None:
        self._table.update(_normalise_table(table))

    def fail_next(self, error: BaseException) -> None:
        """Make the next delivered request fail with ``error``."""

        self._failure = error

    def request(self, names: Sequence[str], deliver: Deliver) -> None:
        self._pending.append((tuple(names), deliver))

    def pump(self) -> int:
        """Answer every queued request; returns how many were delivered."""

        delivered = 0
        while self._pending:
            names, deliver = self._pending.popleft()
            if self._failure is not None:
                error, self._failure = self._failure, None
                deliver(EphemerisResult(error=error))
            else:
                subset = {name: dict(self._table[name]) for name in names if name in self._table}
                deliver(EphemerisResult(table=subset))
            delivered += 1
        return delivered


def _normalise_table(table: Mapping[str, object]) -> EphemerisTable:
    if "bodies" in table and isinstance(table["bodies"], Mapping):
        table = table["bodies"]
    result: EphemerisTable = {}
    for name, entry in table.items():
        if not isinstance(entry, Mapping):
            raise EphemerisError(f"ephemeris entry for {name!r} must be a mapping")
        result[str(name)] = dict(entry)
    return result


def load_ephemeris_table(path: str | Path) -> EphemerisTable:
    """Read a JSON ephemeris table from ``path``."""

    path = Path(path)
    try:
        with path.open("r", encoding="utf-8") as fh:
            data = json.load(fh)
    except (OSError, json.JSONDecodeError) as exc:
        raise EphemerisError(f"cannot read ephemeris table {path}: {exc}") from exc
    if not isinstance(data, Mapping):
        raise EphemerisError(f"ephemeris table {path} must contain a JSON object")
    return _normalise_table(data)


def parse_horizons_vectors(text: str) -> dict[str, object]:
    """Parse a JPL Horizons CSV vector table (``VEC_TABLE=2``, km and km/s).

    Returns ``position`` and ``velocity`` (x/y only) in meters and meters per
    second, plus ``radius`` (m) and ``mass`` (kg) when the physical
    properties header carries them.
    """

    match = _SOE_RE.search(text)
    if match is None:
        raise EphemerisError("no $$SOE/$$EOE vector block in Horizons output")
    rows = [line.strip() for line in match.group(1).strip().splitlines() if line.strip()]
    if not rows:
        raise EphemerisError("empty Horizons vector block")
    fields = [part.strip() for part in rows[0].split(",")]
    if len(fields) < 8:
        raise EphemerisError(f"expected at least 8 CSV fields, got {len(fields)}")
    try:
        x, y = float(fields[2]), float(fields[3])
        vx, vy = float(fields[5]), float(fields[6])
    except ValueError as exc:
        raise EphemerisError(f"malformed Horizons vector row: {rows[0]!r}") from exc

    entry: dict[str, object] = {
        "position": [x * KM, y * KM],
        "velocity": [vx * KM, vy * KM],
    }
    radius_match = _RADIUS_RE.search(text)
    if radius_match:
        entry["radius"] = float(radius_match.group(1)) * KM
    mass_match = _MASS_RE.search(text)
    if mass_match:
        entry["mass"] = float(mass_match.group(2)) * 10.0 ** int(mass_match.group(1))
    return entry


__all__ = [
    "EphemerisRequest",
    "EphemerisResult",
    "EphemerisSource",
    "EphemerisTable",
    "RequestTracker",
    "TableEphemerisSource",
    "load_ephemeris_table",
    "parse_horizons_vectors",
]
