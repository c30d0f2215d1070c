"""
Business Record Data Model
"""

from dataclasses import dataclass, field
from typing import Optional, Dict, Any, List


UNKNOWN_BUSINESS = 'Unknown Business'

# Fixed schema columns; anything else travels in additional_fields
CORE_FIELDS = [
    'name',
    'phone',
    'email',
    'address',
    'website',
    'description',
    'category',
    'city',
    'state',
    'industry',
]


@dataclass
class BusinessData:
    """One extracted business listing"""

    name: str = UNKNOWN_BUSINESS

    # Contact Information
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    website: Optional[str] = None

    # Business Information
    description: Optional[str] = None
    category: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    industry: Optional[str] = None

    # Open-ended extras (source url, scrape timestamp, ...)
    additional_fields: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        for key in CORE_FIELDS:
            value = getattr(self, key)
            if isinstance(value, str):
                value = value.strip()
                setattr(self, key, value or None)
        if not self.name:
            self.name = UNKNOWN_BUSINESS

    @property
    def has_email(self) -> bool:
        return bool(self.email)

    def get(self, key: str, default: Any = None) -> Any:
        """Read a core field or an additional field by name"""
        if key in CORE_FIELDS:
            value = getattr(self, key)
            return default if value is None else value
        return self.additional_fields.get(key, default)

    def set(self, key: str, value: Any) -> None:
        """Write a core field or an additional field by name"""
        if key in CORE_FIELDS:
            if isinstance(value, str):
                value = value.strip() or None
            setattr(self, key, value)
        else:
            self.additional_fields[key] = value

    def keys(self) -> List[str]:
        """Names of populated fields, core fields first"""
        present = [key for key in CORE_FIELDS if getattr(self, key) is not None]
        present.extend(k for k, v in self.additional_fields.items() if v is not None)
        return present

    def to_dict(self) -> Dict[str, Any]:
        """Flatten into a plain dictionary, omitting absent fields"""
        return {key: self.get(key) for key in self.keys()}

    def copy(self) -> 'BusinessData':
        return BusinessData.from_dict(self.to_dict())

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'BusinessData':
        """Create a record from a dictionary; unknown keys go to additional_fields"""
        core = {key: data.get(key) for key in CORE_FIELDS if key in data}
        extras = {}
        for key, value in data.items():
            if key in CORE_FIELDS or value is None:
                continue
            if key in ('additional_fields', 'additional_data') and isinstance(value, dict):
                extras.update(value)
            else:
                extras[key] = value

        for key, value in list(core.items()):
            if value is not None and not isinstance(value, str):
                core[key] = str(value)

        return cls(additional_fields=extras, **core)
