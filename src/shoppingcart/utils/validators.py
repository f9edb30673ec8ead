from decimal import Decimal
from typing import Any, Optional, Union

from shoppingcart.core.exceptions import InvalidArgumentError


Number = Union[int, float]


class ValidationUtils:
    """
    Boundary checks for values entering the cart

    Every check raises InvalidArgumentError before any cart state is
    touched, so a rejected call leaves the cart as it was.
    """

    @classmethod
    def is_number(cls, value: Any) -> bool:
        """True for int/float/Decimal, but not bool"""
        return isinstance(value, (int, float, Decimal)) and not isinstance(value, bool)

    @classmethod
    def require_identifier(cls, value: Any) -> Union[str, int]:
        """Item ids must be a non-empty string or an integer"""
        if value is None or isinstance(value, bool):
            raise InvalidArgumentError("Please supply a valid identifier.", "id")
        if isinstance(value, str):
            if not value.strip():
                raise InvalidArgumentError("Please supply a valid identifier.", "id")
            return value
        if isinstance(value, int):
            # 0 is treated as "no identifier"
            if value == 0:
                raise InvalidArgumentError("Please supply a valid identifier.", "id")
            return value
        raise InvalidArgumentError("Please supply a valid identifier.", "id")

    @classmethod
    def require_name(cls, value: Any) -> str:
        if not isinstance(value, str) or not value.strip():
            raise InvalidArgumentError("Please supply a valid name.", "name")
        return value

    @classmethod
    def require_price(cls, value: Any) -> float:
        if not cls.is_number(value):
            raise InvalidArgumentError("Please supply a valid price.", "price")
        return float(value)

    @classmethod
    def require_quantity(cls, value: Any) -> Number:
        """Quantities may be fractional; ints stay ints"""
        if not cls.is_number(value):
            raise InvalidArgumentError("Please supply a valid quantity.", "qty")
        if isinstance(value, Decimal):
            return float(value)
        return value

    @classmethod
    def require_tax_rate(cls, value: Any) -> float:
        if not cls.is_number(value):
            raise InvalidArgumentError("Please supply a valid tax rate.", "taxRate")
        return float(value)

    @classmethod
    def require_amount(cls, value: Any, field: Optional[str] = None) -> float:
        if not cls.is_number(value):
            raise InvalidArgumentError("Please supply a valid amount.", field or "amount")
        return float(value)
