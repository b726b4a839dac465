"""Two-stage validation package."""

from budgeter.validation.validator import BudgetValidator, parse_input

__all__ = ["BudgetValidator", "parse_input"]
