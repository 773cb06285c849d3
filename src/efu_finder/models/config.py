"""
Configuration data models for EFU Finder.

This module defines the settings that shape the engine's defaults: display
text for placeholders and attribute labels, date formatting, paging, the
initial search flags, and the default sort order.
"""

from typing import Dict, List, Optional, Any
from enum import Enum
from pydantic import BaseModel, Field, field_validator, model_validator

from .search_results import SortKey, SortState


class DisplayTimezone(Enum):
    """Timezones dates can be displayed in."""
    UTC = "utc"
    LOCAL = "local"


class DisplayConfig(BaseModel):
    """
    Configuration for formatted output.

    Attributes:
        placeholder: Text shown for absent sizes and dates
        no_flags_label: Label for an attribute bitmask of exactly zero
        attribute_separator: Text placed between attribute labels
        date_format: strftime format for the date part
        time_format: strftime format for the time part
        timezone: Whether dates are shown in UTC or local time
    """

    placeholder: str = Field("—", description="Text shown for absent values")
    no_flags_label: str = Field("No flags", min_length=1, description="Label for a zero bitmask")
    attribute_separator: str = Field(", ", description="Separator between attribute labels")
    date_format: str = Field("%Y-%m-%d", min_length=1, description="strftime format for dates")
    time_format: str = Field("%H:%M:%S", min_length=1, description="strftime format for times")
    timezone: DisplayTimezone = Field(DisplayTimezone.UTC, description="Display timezone")

    @field_validator('timezone', mode='before')
    @classmethod
    def validate_timezone(cls, v) -> DisplayTimezone:
        """Validate and convert timezone to enum."""
        if isinstance(v, str):
            try:
                return DisplayTimezone(v.lower())
            except ValueError:
                raise ValueError(f"Invalid display timezone: {v}")
        return v

    @field_validator('date_format', 'time_format')
    @classmethod
    def validate_format(cls, v: str) -> str:
        """Ensure the format contains at least one directive."""
        if '%' not in v:
            raise ValueError(f"Format '{v}' contains no strftime directive")
        return v

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        data = self.model_dump()
        data['timezone'] = self.timezone.value
        return data


class PagingConfig(BaseModel):
    """
    Configuration for pagination.

    Attributes:
        page_size: Default number of records per page
        chunk_size: Records per chunk for progressive consumers
    """

    page_size: int = Field(20, gt=0, le=10000, description="Records per page")
    chunk_size: int = Field(200, gt=0, description="Records per progressive chunk")

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump()


class SearchConfig(BaseModel):
    """
    Initial search flags.

    Attributes:
        regex_mode: Treat query tokens as regular expressions
        case_sensitive: Match respecting case
        include_directories: Keep directory records in results
    """

    regex_mode: bool = Field(False, description="Treat tokens as regular expressions")
    case_sensitive: bool = Field(False, description="Match respecting case")
    include_directories: bool = Field(True, description="Keep directory records")

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump()


class SortConfig(BaseModel):
    """
    Default ordering applied after every ingestion.

    Attributes:
        key: Default sort column
        ascending: Default direction
    """

    key: SortKey = Field(SortKey.FILE_NAME, description="Default sort column")
    ascending: bool = Field(True, description="Default sort direction")

    @field_validator('key', mode='before')
    @classmethod
    def validate_key(cls, v) -> SortKey:
        """Validate and convert sort key to enum."""
        return SortKey.parse(v)

    def to_sort_state(self) -> SortState:
        return SortState(key=self.key, ascending=self.ascending)

    def to_dict(self) -> Dict[str, Any]:
        return {'key': self.key.value, 'ascending': self.ascending}


class ViewPreferences(BaseModel):
    """
    Persisted view preferences, restored between sessions.

    Attributes:
        query: Last query text
        regex_mode: Last regex flag
        case_sensitive: Last case flag
        include_directories: Last directory inclusion flag
        sort_key: Last sort column
        sort_ascending: Last sort direction
        page_size: Last page size
        theme: Presentation theme name, stored as is
    """

    query: str = Field("", description="Last query text")
    regex_mode: bool = Field(False, description="Last regex flag")
    case_sensitive: bool = Field(False, description="Last case flag")
    include_directories: bool = Field(True, description="Last directory inclusion flag")
    sort_key: SortKey = Field(SortKey.FILE_NAME, description="Last sort column")
    sort_ascending: bool = Field(True, description="Last sort direction")
    page_size: int = Field(20, gt=0, le=10000, description="Last page size")
    theme: Optional[str] = Field(None, description="Presentation theme name")

    @field_validator('sort_key', mode='before')
    @classmethod
    def validate_sort_key(cls, v) -> SortKey:
        return SortKey.parse(v)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        data = self.model_dump()
        data['sort_key'] = self.sort_key.value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ViewPreferences':
        return cls.model_validate(data)


class EngineConfig(BaseModel):
    """
    Main configuration class for EFU Finder.

    Attributes:
        display: Formatting of sizes, dates and attributes
        paging: Page and chunk sizes
        search: Initial search flags
        sort: Default sort order
    """

    display: DisplayConfig = Field(default_factory=DisplayConfig, description="Display configuration")
    paging: PagingConfig = Field(default_factory=PagingConfig, description="Paging configuration")
    search: SearchConfig = Field(default_factory=SearchConfig, description="Search configuration")
    sort: SortConfig = Field(default_factory=SortConfig, description="Sort configuration")

    @model_validator(mode='after')
    def validate_consistency(self):
        """Validate relationships between sections."""
        if self.display.date_format == self.display.time_format:
            raise ValueError("Date and time formats must differ")
        return self

    def validate_configuration(self) -> List[str]:
        """
        Check the configuration for questionable but valid settings.

        Returns:
            List of warning messages
        """
        warnings = []

        if self.paging.page_size > 1000:
            warnings.append(f"Large page size ({self.paging.page_size}) may make pages slow to render")

        if self.paging.page_size > self.paging.chunk_size:
            warnings.append("Page size exceeds chunk size; pages will be rendered across several chunks")

        if not self.display.placeholder:
            warnings.append("Empty placeholder makes absent values indistinguishable from blank fields")

        if self.search.regex_mode and not self.search.case_sensitive:
            warnings.append("Regex mode is case-insensitive by default; character classes ignore case")

        return warnings

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary representation."""
        return {
            'display': self.display.to_dict(),
            'paging': self.paging.to_dict(),
            'search': self.search.to_dict(),
            'sort': self.sort.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'EngineConfig':
        """Create configuration from dictionary representation."""
        return cls.model_validate(data)

    def __str__(self) -> str:
        """String representation of the configuration."""
        parts = [f"Page size: {self.paging.page_size}"]
        parts.append(f"Sort: {self.sort.to_sort_state()}")
        parts.append(f"Regex: {self.search.regex_mode}")
        parts.append(f"Directories: {self.search.include_directories}")
        parts.append(f"Timezone: {self.display.timezone.value}")

        return " | ".join(parts)


CONFIG_SECTIONS = ('display', 'paging', 'search', 'sort')


def validate_config_dict(config_data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Validate a configuration dictionary.

    Args:
        config_data: Dictionary containing configuration data

    Returns:
        Validated and normalized configuration dictionary

    Raises:
        ValueError: If configuration is invalid
    """
    if not isinstance(config_data, dict):
        raise ValueError(f"Configuration must be a mapping, got {type(config_data).__name__}")

    unknown = [key for key in config_data if key not in CONFIG_SECTIONS]
    if unknown:
        raise ValueError(f"Unknown configuration sections: {', '.join(sorted(map(str, unknown)))}")

    for section in CONFIG_SECTIONS:
        value = config_data.get(section)
        if value is not None and not isinstance(value, dict):
            raise ValueError(f"Section '{section}' must be a mapping, got {type(value).__name__}")

    try:
        config = EngineConfig.from_dict({k: v for k, v in config_data.items() if v is not None})
    except Exception as e:
        raise ValueError(f"Configuration validation failed: {e}") from e

    return config.to_dict()
