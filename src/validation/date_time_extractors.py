"""
Time extraction for out-of-time validation
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

import pandas as pd

from ..exceptions import InvalidInputError
from ..models.instance import Instance


class DateTimeExtractor(ABC):
    """Total, deterministic mapping of an instance to an orderable timestamp"""

    @abstractmethod
    def extract_date_time(self, instance: Instance) -> Any:
        pass

    def __call__(self, instance: Instance) -> Any:
        return self.extract_date_time(instance)


class AttributeDateTimeExtractor(DateTimeExtractor):
    """
    Reads the timestamp from an instance attribute.

    Args:
        attribute: Name of the attribute holding the time
        unit: Epoch unit ('s', 'ms', ...) for numeric attribute values
    """

    def __init__(self, attribute: str = "timestamp", unit: Optional[str] = None):
        self.attribute = attribute
        self.unit = unit

    def extract_date_time(self, instance: Instance) -> pd.Timestamp:
        value = instance.attributes.get(self.attribute)
        if value is None:
            raise InvalidInputError(f"Instance has no '{self.attribute}' attribute")
        if self.unit is not None:
            return pd.Timestamp(value, unit=self.unit)
        return pd.Timestamp(value)

    def __repr__(self) -> str:
        return f"AttributeDateTimeExtractor(attribute={self.attribute!r}, unit={self.unit!r})"


__all__ = [
    "DateTimeExtractor",
    "AttributeDateTimeExtractor",
]
