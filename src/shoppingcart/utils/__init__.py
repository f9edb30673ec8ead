from .date_utils import DateUtils
from .formatting_utils import FormattingUtils
from .validators import ValidationUtils

__all__ = ["DateUtils", "FormattingUtils", "ValidationUtils"]
