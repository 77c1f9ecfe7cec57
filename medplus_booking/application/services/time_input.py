from datetime import time

from ...domain.calendar import parse_time
from ...exceptions import ValidationError


def wall_clock(value, field_name: str) -> time:
    """Normalize caller input to a naive ``time`` or raise ``ValidationError``."""
    try:
        return parse_time(value)
    except ValueError as e:
        raise ValidationError(f"{field_name}: {str(e)}")
