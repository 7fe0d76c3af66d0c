"""Amount model."""

from dataclasses import dataclass

from paylink.models.types import DisplayCurrency


@dataclass(frozen=True)
class AmountSpec:
    """Amount as typed plus its token base-unit value at read time."""

    display_currency: DisplayCurrency
    display_value: str
    token_base_units: int | None = None
    error: str | None = None

    @property
    def is_empty(self) -> bool:
        return not self.display_value.strip()

    @property
    def is_positive(self) -> bool:
        return self.token_base_units is not None and self.token_base_units > 0
