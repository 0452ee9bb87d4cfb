"""Currency -- ISO 4217 registry and precision-derived rounding."""

from dataclasses import dataclass
from decimal import Decimal
from typing import ClassVar


@dataclass(frozen=True)
class CurrencyInfo:
    """Information about a single ISO 4217 currency."""

    code: str
    decimal_places: int
    name: str

    @property
    def minor_unit(self) -> Decimal:
        """Smallest representable amount (0.01 for two-decimal currencies)."""
        return Decimal(10) ** -self.decimal_places

    @property
    def quantize_string(self) -> str:
        """String for Decimal.quantize() to round to this currency's precision."""
        if self.decimal_places == 0:
            return "1"
        return "0." + "0" * self.decimal_places


class CurrencyRegistry:
    """Registry of the ISO 4217 currencies contracts may be written in."""

    _CURRENCIES: ClassVar[dict[str, CurrencyInfo]] = {
        # Settlement currencies of the platform's markets
        "NGN": CurrencyInfo("NGN", 2, "Nigerian Naira"),
        "GHS": CurrencyInfo("GHS", 2, "Ghanaian Cedi"),
        "KES": CurrencyInfo("KES", 2, "Kenyan Shilling"),
        "ZAR": CurrencyInfo("ZAR", 2, "South African Rand"),
        "EGP": CurrencyInfo("EGP", 2, "Egyptian Pound"),
        "MAD": CurrencyInfo("MAD", 2, "Moroccan Dirham"),
        # Gulf and Levant
        "AED": CurrencyInfo("AED", 2, "UAE Dirham"),
        "SAR": CurrencyInfo("SAR", 2, "Saudi Riyal"),
        "QAR": CurrencyInfo("QAR", 2, "Qatari Riyal"),
        "BHD": CurrencyInfo("BHD", 3, "Bahraini Dinar"),
        "KWD": CurrencyInfo("KWD", 3, "Kuwaiti Dinar"),
        "OMR": CurrencyInfo("OMR", 3, "Omani Rial"),
        "JOD": CurrencyInfo("JOD", 3, "Jordanian Dinar"),
        "IQD": CurrencyInfo("IQD", 3, "Iraqi Dinar"),
        # South and South-East Asia
        "MYR": CurrencyInfo("MYR", 2, "Malaysian Ringgit"),
        "IDR": CurrencyInfo("IDR", 2, "Indonesian Rupiah"),
        "PKR": CurrencyInfo("PKR", 2, "Pakistani Rupee"),
        "BDT": CurrencyInfo("BDT", 2, "Bangladeshi Taka"),
        "BND": CurrencyInfo("BND", 2, "Brunei Dollar"),
        "TRY": CurrencyInfo("TRY", 2, "Turkish Lira"),
        # Major reserve currencies
        "USD": CurrencyInfo("USD", 2, "US Dollar"),
        "EUR": CurrencyInfo("EUR", 2, "Euro"),
        "GBP": CurrencyInfo("GBP", 2, "Pound Sterling"),
        "CHF": CurrencyInfo("CHF", 2, "Swiss Franc"),
        "JPY": CurrencyInfo("JPY", 0, "Japanese Yen"),
        # Zero decimal currencies
        "XOF": CurrencyInfo("XOF", 0, "West African CFA Franc"),
        "XAF": CurrencyInfo("XAF", 0, "Central African CFA Franc"),
        "UGX": CurrencyInfo("UGX", 0, "Ugandan Shilling"),
        "RWF": CurrencyInfo("RWF", 0, "Rwandan Franc"),
        "GNF": CurrencyInfo("GNF", 0, "Guinean Franc"),
        "DJF": CurrencyInfo("DJF", 0, "Djiboutian Franc"),
        "KMF": CurrencyInfo("KMF", 0, "Comorian Franc"),
    }

    # Default decimal places for unknown currencies
    DEFAULT_DECIMAL_PLACES: ClassVar[int] = 2

    @classmethod
    def is_valid(cls, code: str) -> bool:
        """Check if a currency code is registered."""
        if not code or not isinstance(code, str):
            return False
        return code.upper().strip() in cls._CURRENCIES

    @classmethod
    def get_info(cls, code: str) -> CurrencyInfo | None:
        """Get currency information by code."""
        if not code or not isinstance(code, str):
            return None
        return cls._CURRENCIES.get(code.upper().strip())

    @classmethod
    def get_decimal_places(cls, code: str) -> int:
        """Get decimal places for a currency."""
        info = cls.get_info(code)
        return info.decimal_places if info else cls.DEFAULT_DECIMAL_PLACES

    @classmethod
    def get_minor_unit(cls, code: str) -> Decimal:
        """Smallest currency unit, derived from decimal places."""
        return Decimal(10) ** -cls.get_decimal_places(code)

    @classmethod
    def all_codes(cls) -> frozenset[str]:
        """All registered currency codes."""
        return frozenset(cls._CURRENCIES)
