"""
LedgerResult — success/failure envelope returned by the Ledger facade.

Usage:
    result = ledger.reserve(record.pk, 5, ReservedFor.ORDER, "O-1001")
    if not result.ok:
        return JsonResponse(result.error.as_dict(), status=409)
    reservation = result.value

    # or, where an exception is preferred:
    reservation = ledger.reserve(...).unwrap()
"""

from dataclasses import dataclass
from typing import Any

from ledgerman.exceptions import LedgerError


@dataclass(frozen=True)
class LedgerResult:
    ok: bool
    value: Any = None
    error: LedgerError | None = None

    @classmethod
    def success(cls, value=None) -> 'LedgerResult':
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: LedgerError) -> 'LedgerResult':
        return cls(ok=False, error=error)

    @property
    def code(self) -> str | None:
        """Error code, None on success."""
        return self.error.code if self.error is not None else None

    def unwrap(self):
        """Return value, or raise the captured LedgerError."""
        if not self.ok:
            raise self.error
        return self.value

    def __bool__(self) -> bool:
        return self.ok
