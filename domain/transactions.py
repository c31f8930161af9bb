from dataclasses import dataclass
from enum import Enum


class TransactionType(str, Enum):
    IN = "IN"
    OUT = "OUT"

    @classmethod
    def parse(cls, value: "str | TransactionType") -> "TransactionType":
        if isinstance(value, TransactionType):
            return value
        normalized = str(value or "").strip().upper()
        try:
            return cls(normalized)
        except ValueError:
            raise ValueError(f"Unsupported transaction type: {value!r}") from None


@dataclass(frozen=True)
class Transaction:
    id: str
    wallet_id: str
    type: TransactionType
    amount: int
    created_at: str
    reason: str | None = None
    image_uri: str | None = None

    def __post_init__(self) -> None:
        if not str(self.id or "").strip():
            raise ValueError("Transaction id is required")
        if not str(self.wallet_id or "").strip():
            raise ValueError("Transaction wallet_id is required")
        if not str(self.created_at or "").strip():
            raise ValueError("Transaction created_at is required")
        object.__setattr__(self, "type", TransactionType.parse(self.type))
        amount = int(self.amount)
        if amount < 0:
            raise ValueError("Transaction amount must be non-negative")
        object.__setattr__(self, "amount", amount)
        if self.image_uri == "":
            object.__setattr__(self, "image_uri", None)

    def signed_amount(self) -> int:
        if self.type is TransactionType.IN:
            return self.amount
        return -self.amount
