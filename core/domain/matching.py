from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal


@dataclass(frozen=True)
class MatchCandidate:
    po_id: str
    code: str
    variance: Decimal
    within_tolerance: bool


@dataclass(frozen=True)
class MatchResult:
    invoice_id: str
    candidates: list[MatchCandidate] = field(default_factory=list)

    def best_within_tolerance(self) -> MatchCandidate | None:
        """First ranked candidate inside tolerance, if any."""
        for candidate in self.candidates:
            if candidate.within_tolerance:
                return candidate
        return None


__all__ = ["MatchCandidate", "MatchResult"]
