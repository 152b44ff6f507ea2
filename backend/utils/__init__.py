import enum
from sqlalchemy.orm import class_mapper
from .clock import now, APP_TIMEZONE
from .formatting import compute_amount, to_money, format_peso

def sqlalchemy_to_dict(obj, fields=None):
    """Convert a SQLAlchemy object to a JSON-friendly dictionary.

    When ``fields`` is given only those columns are included, which keeps audit
    and history snapshots small.
    """
    if not obj:
        return None
    mapper = class_mapper(obj.__class__)
    result = {}
    for c in mapper.columns:
        if fields is not None and c.key not in fields:
            continue
        value = getattr(obj, c.key)
        # Convert datetime objects to ISO format strings
        if hasattr(value, 'isoformat'):
            value = value.isoformat()
        # Convert Decimal objects to strings so cents survive the JSON round trip
        elif hasattr(value, 'normalize') and hasattr(value, 'from_float'):  # Check if it's a Decimal
            value = str(value)
        # Convert enum types to their stored values
        elif isinstance(value, enum.Enum):
            value = value.value
        result[c.key] = value
    return result

__all__ = ['APP_TIMEZONE', 'compute_amount', 'format_peso', 'now', 'sqlalchemy_to_dict', 'to_money']
