"""
Tax Bracket Tables

A bracket table is an ordered tuple of contiguous half-open bands
[low, high) covering [0, infinity):

- the first band starts at 0
- each band starts where the previous one ends
- only the last band is open-ended (high=None)
- every rate lies in [0, 1]

A table that breaks any of these rules is a configuration error. Tables
are validated once, when loaded at startup, so a bad table can never
surface in the middle of a request.
"""

from decimal import Decimal
from typing import Any, Iterable, Union

import structlog
from pydantic import ValidationError as PydanticValidationError

from budgeter.config.settings import TaxSettings
from budgeter.exceptions import ConfigurationError
from budgeter.models.tax import TaxBracket

logger = structlog.get_logger()

# Width of each taxed band above the standard deduction, 2025 single filer
TAXED_BAND_WIDTHS_2025: tuple[tuple[Decimal, Decimal], ...] = (
    (Decimal("11925"), Decimal("0.10")),
    (Decimal("36550"), Decimal("0.12")),
    (Decimal("54875"), Decimal("0.22")),
    (Decimal("93950"), Decimal("0.24")),
    (Decimal("53225"), Decimal("0.32")),
    (Decimal("375825"), Decimal("0.35")),
)
TOP_RATE_2025 = Decimal("0.37")

BracketRows = Iterable[Union[TaxBracket, dict[str, Any]]]


def validate_brackets(brackets: BracketRows) -> tuple[TaxBracket, ...]:
    """
    Check a bracket table and return it as a tuple of TaxBracket.

    Raises:
        ConfigurationError: On an empty table, a band not starting at 0,
            a gap or overlap between bands, an empty band, a bounded top
            band, an open-ended band before the top, or a rate outside [0, 1]
    """
    try:
        table = tuple(
            row if isinstance(row, TaxBracket) else TaxBracket.model_validate(row)
            for row in brackets
        )
    except PydanticValidationError as e:
        raise ConfigurationError(
            f"Malformed tax bracket row: {e.errors()[0]['msg']}",
            setting="tax_brackets",
        ) from e

    if not table:
        raise ConfigurationError("Tax bracket table is empty", setting="tax_brackets")

    if table[0].low != 0:
        raise ConfigurationError(
            f"First tax bracket must start at 0, not {table[0].low}",
            setting="tax_brackets",
            details={"index": 0},
        )

    for index, bracket in enumerate(table):
        if not Decimal("0") <= bracket.rate <= Decimal("1"):
            raise ConfigurationError(
                f"Tax bracket rate {bracket.rate} is outside [0, 1]",
                setting="tax_brackets",
                details={"index": index},
            )

        is_last = index == len(table) - 1
        if bracket.high is None:
            if not is_last:
                raise ConfigurationError(
                    "Only the last tax bracket may be open-ended",
                    setting="tax_brackets",
                    details={"index": index},
                )
            continue

        if is_last:
            raise ConfigurationError(
                "Last tax bracket must be open-ended (high=None)",
                setting="tax_brackets",
                details={"index": index},
            )
        if bracket.high <= bracket.low:
            raise ConfigurationError(
                f"Tax bracket [{bracket.low}, {bracket.high}) is empty",
                setting="tax_brackets",
                details={"index": index},
            )

        next_low = table[index + 1].low
        if next_low > bracket.high:
            raise ConfigurationError(
                f"Gap between tax brackets at {bracket.high}..{next_low}",
                setting="tax_brackets",
                details={"index": index},
            )
        if next_low < bracket.high:
            raise ConfigurationError(
                f"Tax brackets overlap at {next_low}..{bracket.high}",
                setting="tax_brackets",
                details={"index": index},
            )

    return table


def build_bracket_table(
    standard_deduction: Decimal,
    band_widths: Iterable[tuple[Decimal, Decimal]] = TAXED_BAND_WIDTHS_2025,
    top_rate: Decimal = TOP_RATE_2025,
) -> tuple[TaxBracket, ...]:
    """
    Build a table whose first band is the standard deduction at 0%,
    followed by the given (width, rate) bands and an open-ended top band.
    """
    rows = []
    low = Decimal("0")
    if standard_deduction > 0:
        rows.append(TaxBracket(low=low, high=standard_deduction, rate=Decimal("0")))
        low = standard_deduction

    for width, rate in band_widths:
        rows.append(TaxBracket(low=low, high=low + width, rate=rate))
        low += width

    rows.append(TaxBracket(low=low, high=None, rate=top_rate))
    return validate_brackets(rows)


def load_tax_brackets(settings: TaxSettings) -> tuple[TaxBracket, ...]:
    """
    Build and validate the bracket table for the configured tax year.

    Raises:
        ConfigurationError: If no thresholds exist for the year
    """
    if settings.tax_year != 2025:
        raise ConfigurationError(
            f"No tax bracket thresholds for tax year {settings.tax_year}",
            setting="tax_year",
        )

    table = build_bracket_table(settings.standard_deduction)
    logger.info(
        "tax_brackets_loaded",
        tax_year=settings.tax_year,
        standard_deduction=str(settings.standard_deduction),
        bands=len(table),
    )
    return table
