from typing import Any, Optional, Union
from decimal import Decimal, ROUND_HALF_UP
import json


class FormattingUtils:
    """
    Display formatting for cart amounts

    Formatting is presentation-only: the returned strings are never fed
    back into item prices or totals.
    """

    DEFAULT_DECIMALS = 2
    DEFAULT_DECIMAL_POINT = '.'
    DEFAULT_THOUSANDS_SEPARATOR = ''

    @classmethod
    def number_format(
        cls,
        value: Union[int, float, Decimal],
        decimals: int = DEFAULT_DECIMALS,
        decimal_point: str = DEFAULT_DECIMAL_POINT,
        thousands_separator: str = DEFAULT_THOUSANDS_SEPARATOR
    ) -> str:
        """
        Render a number with a fixed number of decimals

        Rounds half away from zero and groups the integer part by
        thousands.

        Examples:
            number_format(6000, 2, ',', '.') -> "6.000,00"
            number_format(1050.0) -> "1050.00"
            number_format(2.675, 2) -> "2.68"
        """
        if decimals < 0:
            raise ValueError("decimals cannot be negative")

        # str() keeps the shortest repr so 2.675 rounds the way it reads
        amount = Decimal(str(value))
        quantum = Decimal(1).scaleb(-decimals)
        rounded = amount.copy_abs().quantize(quantum, rounding=ROUND_HALF_UP)

        integer_part, _, fraction_part = f"{rounded:f}".partition('.')

        groups = []
        while len(integer_part) > 3:
            groups.insert(0, integer_part[-3:])
            integer_part = integer_part[:-3]
        groups.insert(0, integer_part)

        result = thousands_separator.join(groups)
        if decimals > 0:
            result = f"{result}{decimal_point}{fraction_part}"

        if amount < 0 and rounded != 0:
            result = f"-{result}"

        return result

    @classmethod
    def format_percentage(cls, percent: float, decimal_places: int = 1) -> str:
        """
        Format a percent value

        Examples:
            format_percentage(21) -> "21.0%"
            format_percentage(19.5, 2) -> "19.50%"
        """
        return f"{percent:.{decimal_places}f}%"

    @classmethod
    def format_json_compact(cls, data: Any) -> str:
        """Serialize data the way stored snapshots are written"""
        return json.dumps(data, separators=(',', ':'), ensure_ascii=False, default=str)
