from dataclasses import dataclass

from .icons import DEFAULT_WALLET_ICON, normalize_icon


@dataclass(frozen=True)
class Wallet:
    id: str
    name: str
    initial_balance: int
    current_balance: int
    created_at: str
    image_uri: str | None = None
    icon: str = DEFAULT_WALLET_ICON

    def __post_init__(self) -> None:
        if not str(self.id or "").strip():
            raise ValueError("Wallet id is required")
        if not str(self.created_at or "").strip():
            raise ValueError("Wallet created_at is required")
        object.__setattr__(self, "initial_balance", int(self.initial_balance))
        object.__setattr__(self, "current_balance", int(self.current_balance))
        object.__setattr__(self, "icon", normalize_icon(self.icon))
        if self.image_uri == "":
            object.__setattr__(self, "image_uri", None)
