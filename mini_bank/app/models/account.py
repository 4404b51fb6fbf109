from __future__ import annotations

import threading
from dataclasses import dataclass, field
from decimal import Decimal


@dataclass
class AccountRecord:
    """Mutable ledger line, only ever touched by the account store."""

    number: str
    owner: str
    balance: Decimal = Decimal("0")
    active: bool = True
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def snapshot(self) -> AccountSnapshot:
        return AccountSnapshot(
            number=self.number,
            owner=self.owner,
            balance=self.balance,
            active=self.active,
        )


@dataclass(frozen=True)
class AccountSnapshot:
    number: str
    owner: str
    balance: Decimal
    active: bool
