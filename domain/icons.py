from enum import Enum


class WalletIcon(str, Enum):
    WALLET = "Wallet"
    LANDMARK = "Landmark"
    BANKNOTE = "Banknote"
    CREDIT_CARD = "CreditCard"
    PIGGY_BANK = "PiggyBank"
    COINS = "Coins"
    CIRCLE_DOLLAR_SIGN = "CircleDollarSign"
    HAND_COINS = "HandCoins"
    RECEIPT = "Receipt"
    BADGE_DOLLAR_SIGN = "BadgeDollarSign"
    BUILDING = "Building2"
    VAULT = "Vault"
    DOLLAR_SIGN = "DollarSign"
    BITCOIN = "Bitcoin"
    TRENDING_UP = "TrendingUp"
    SHOPPING_BAG = "ShoppingBag"
    GIFT = "Gift"
    BRIEFCASE = "Briefcase"
    CAR = "Car"
    HOME = "Home"


DEFAULT_WALLET_ICON = WalletIcon.WALLET.value
WALLET_ICON_KEYS = frozenset(icon.value for icon in WalletIcon)


def normalize_icon(key: str | WalletIcon | None) -> str:
    """Return a stored icon key, falling back to the default for unknown keys."""
    if isinstance(key, WalletIcon):
        return key.value
    value = str(key or "").strip()
    if value in WALLET_ICON_KEYS:
        return value
    return DEFAULT_WALLET_ICON
