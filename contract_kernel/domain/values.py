"""
Values -- Immutable, self-validating domain value objects.

Responsibility:
    Provides the fixed-precision primitives every calculator works in:
    Currency, Money, Quantity and Percentage, plus the guarded-division
    helpers that turn a zero denominator into zero instead of an error.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    Imported by every other domain module and by every engine.

Invariants enforced:
    - Money amounts are always Decimal, never binary float.
    - Money never mixes currencies in arithmetic or comparison.
    - Rounding precision is derived from the currency's minor unit
      (ROUND_HALF_UP), never hardcoded.
    - Percentage values always lie in [0, 100].
    - safe_divide never raises and never yields NaN or Infinity.

Failure modes:
    - InvalidInputError on construction with a non-numeric amount or an
      unregistered currency code.
    - CurrencyMismatchError when arithmetic mixes currencies.
    - PercentageOutOfRangeError on a percentage outside [0, 100].
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from contract_kernel.domain.currency import CurrencyRegistry
from contract_kernel.exceptions import (
    CurrencyMismatchError,
    InvalidInputError,
    PercentageOutOfRangeError,
)

ZERO = Decimal("0")
HUNDRED = Decimal("100")

RATIO_PLACES = Decimal("0.01")
SCORE_PLACES = Decimal("0.1")


def to_decimal(value: Any, name: str = "value") -> Decimal:
    """Coerce int/str/Decimal (or float via its repr) into a finite Decimal."""
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, bool):
        raise InvalidInputError(name, f"{name} must be numeric, got bool")
    else:
        try:
            result = Decimal(str(value))
        except (InvalidOperation, ValueError) as e:
            raise InvalidInputError(name, f"Invalid {name}: {value!r}") from e
    if not result.is_finite():
        raise InvalidInputError(name, f"{name} must be finite, got {value!r}")
    return result


def safe_divide(numerator: Decimal, denominator: Decimal) -> Decimal:
    """
    Divide, resolving a zero denominator to zero.

    Postconditions:
        - Never raises ZeroDivisionError / InvalidOperation.
        - Never returns NaN or Infinity.
    """
    if denominator == ZERO:
        return ZERO
    return numerator / denominator


def quantize_ratio(value: Decimal) -> Decimal:
    """Round a ratio or percentage for reporting (two decimal places)."""
    return value.quantize(RATIO_PLACES, rounding=ROUND_HALF_UP)


def quantize_score(value: Decimal) -> Decimal:
    """Round a 0-100 score for reporting (one decimal place)."""
    return value.quantize(SCORE_PLACES, rounding=ROUND_HALF_UP)


@dataclass(frozen=True, slots=True)
class Currency:
    """
    ISO 4217 currency code value object.

    Contract:
        Wraps a three-letter code, normalized (uppercased) on construction.
        Unregistered codes are rejected immediately.

    Non-goals:
        - Does NOT perform currency conversion.
    """

    code: str

    def __post_init__(self) -> None:
        normalized = self.code.upper().strip() if self.code else ""
        if not CurrencyRegistry.is_valid(normalized):
            raise InvalidInputError("currency", f"Invalid ISO 4217 currency code: {self.code}")
        object.__setattr__(self, "code", normalized)

    @property
    def decimal_places(self) -> int:
        """ISO 4217 decimal places for this currency."""
        return CurrencyRegistry.get_decimal_places(self.code)

    @property
    def minor_unit(self) -> Decimal:
        """Smallest currency unit (e.g. 0.01)."""
        return CurrencyRegistry.get_minor_unit(self.code)

    def __str__(self) -> str:
        return self.code

    def __repr__(self) -> str:
        return f"Currency({self.code!r})"


@dataclass(frozen=True, slots=True)
class Money:
    """
    Monetary amount value object.

    Contract:
        Pairs a Decimal amount with its Currency -- they are NEVER separated.

    Guarantees:
        - Immutable and hashable.
        - amount is always a Decimal (never float).
        - Arithmetic and comparisons enforce the same-currency constraint.

    Non-goals:
        - Does NOT auto-round -- callers must explicitly call .round().
        - Does NOT reject negative amounts; terms records do that, since
          balances and differences are legitimately signed.
    """

    amount: Decimal
    currency: Currency

    def __post_init__(self) -> None:
        if not isinstance(self.amount, Decimal):
            object.__setattr__(self, "amount", to_decimal(self.amount, "amount"))

        if isinstance(self.currency, str):
            object.__setattr__(self, "currency", Currency(self.currency))
        elif not isinstance(self.currency, Currency):
            raise TypeError(f"currency must be Currency or str, got {type(self.currency)}")

    @classmethod
    def of(cls, amount: Decimal | str | int, currency: str | Currency) -> Money:
        """
        Factory method for creating Money.

        Raises:
            InvalidInputError: If amount cannot be converted or currency is invalid.
        """
        if isinstance(currency, str):
            currency = Currency(currency)
        return cls(amount=to_decimal(amount, "amount"), currency=currency)

    @classmethod
    def zero(cls, currency: str | Currency) -> Money:
        """Create a zero amount in the given currency."""
        if isinstance(currency, str):
            currency = Currency(currency)
        return cls(amount=ZERO, currency=currency)

    @property
    def is_zero(self) -> bool:
        return self.amount == ZERO

    @property
    def is_positive(self) -> bool:
        return self.amount > ZERO

    @property
    def is_negative(self) -> bool:
        return self.amount < ZERO

    def round(self, rounding: str = ROUND_HALF_UP) -> Money:
        """
        Round to the currency's minor unit.

        Returns a new Money instance; the original is unchanged.
        """
        rounded = self.amount.quantize(self.currency.minor_unit, rounding=rounding)
        return Money(amount=rounded, currency=self.currency)

    def _check_currency(self, other: Money) -> None:
        if self.currency != other.currency:
            raise CurrencyMismatchError(
                "amount", self.currency.code, other.currency.code
            )

    def __add__(self, other: Money) -> Money:
        """Add two Money values. Must be same currency."""
        if not isinstance(other, Money):
            return NotImplemented
        self._check_currency(other)
        return Money(amount=self.amount + other.amount, currency=self.currency)

    def __sub__(self, other: Money) -> Money:
        """Subtract two Money values. Must be same currency."""
        if not isinstance(other, Money):
            return NotImplemented
        self._check_currency(other)
        return Money(amount=self.amount - other.amount, currency=self.currency)

    def __neg__(self) -> Money:
        return Money(amount=-self.amount, currency=self.currency)

    def __abs__(self) -> Money:
        return Money(amount=abs(self.amount), currency=self.currency)

    def __mul__(self, factor: Decimal | int | str) -> Money:
        """Multiply by a scalar."""
        if isinstance(factor, (int, str)) and not isinstance(factor, bool):
            factor = Decimal(str(factor))
        if not isinstance(factor, Decimal):
            return NotImplemented
        return Money(amount=self.amount * factor, currency=self.currency)

    def __rmul__(self, factor: Decimal | int | str) -> Money:
        return self.__mul__(factor)

    def __truediv__(self, divisor: Decimal | int | str) -> Money:
        """Divide by a scalar."""
        if isinstance(divisor, (int, str)) and not isinstance(divisor, bool):
            divisor = Decimal(str(divisor))
        if not isinstance(divisor, Decimal):
            return NotImplemented
        return Money(amount=self.amount / divisor, currency=self.currency)

    def __lt__(self, other: Money) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        self._check_currency(other)
        return self.amount < other.amount

    def __le__(self, other: Money) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        self._check_currency(other)
        return self.amount <= other.amount

    def __gt__(self, other: Money) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        self._check_currency(other)
        return self.amount > other.amount

    def __ge__(self, other: Money) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        self._check_currency(other)
        return self.amount >= other.amount

    def __str__(self) -> str:
        return f"{self.amount} {self.currency.code}"

    def __repr__(self) -> str:
        return f"Money({self.amount!r}, {self.currency!r})"


@dataclass(frozen=True, slots=True)
class Quantity:
    """
    Numeric quantity with unit value object.

    Used for forward-sale commodity quantities (tonnes, bags, litres).
    Does NOT perform unit conversion.
    """

    value: Decimal
    unit: str

    def __post_init__(self) -> None:
        if not isinstance(self.value, Decimal):
            object.__setattr__(self, "value", to_decimal(self.value, "quantity"))
        if not self.unit or not self.unit.strip():
            raise InvalidInputError("unit", "Quantity unit is required")
        object.__setattr__(self, "unit", self.unit.strip())

    @classmethod
    def of(cls, value: Decimal | str | int, unit: str) -> Quantity:
        return cls(value=to_decimal(value, "quantity"), unit=unit)

    @property
    def is_zero(self) -> bool:
        return self.value == ZERO

    def __sub__(self, other: Quantity) -> Quantity:
        if not isinstance(other, Quantity):
            return NotImplemented
        if self.unit != other.unit:
            raise InvalidInputError(
                "unit",
                f"Cannot subtract Quantity with different units: {self.unit} and {other.unit}",
            )
        return Quantity(value=self.value - other.value, unit=self.unit)

    def __str__(self) -> str:
        return f"{self.value} {self.unit}"

    def __repr__(self) -> str:
        return f"Quantity({self.value!r}, {self.unit!r})"


@dataclass(frozen=True, slots=True)
class Percentage:
    """
    Percentage value object in the closed range [0, 100].

    Contract:
        ``value`` is expressed in percent (15 means 15%), never as a fraction.

    Guarantees:
        - Immutable; value is always a Decimal in [0, 100].
    """

    value: Decimal

    def __post_init__(self) -> None:
        if not isinstance(self.value, Decimal):
            object.__setattr__(self, "value", to_decimal(self.value, "percentage"))
        if self.value < ZERO or self.value > HUNDRED:
            raise PercentageOutOfRangeError("percentage", self.value)

    @classmethod
    def of(cls, value: Decimal | str | int) -> Percentage:
        return cls(value=to_decimal(value, "percentage"))

    @property
    def fraction(self) -> Decimal:
        """The percentage as a fraction (15 -> 0.15)."""
        return self.value / HUNDRED

    @property
    def complement(self) -> Percentage:
        """100 minus this percentage."""
        return Percentage(HUNDRED - self.value)

    def of_money(self, money: Money) -> Money:
        """Apply this percentage to an amount (unrounded)."""
        return money * self.fraction

    def __str__(self) -> str:
        return f"{self.value}%"

    def __repr__(self) -> str:
        return f"Percentage({self.value!r})"
