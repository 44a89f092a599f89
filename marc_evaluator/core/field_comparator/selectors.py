import math

from dataclasses                              import dataclass
from marc_evaluator.core.record_parser.models import CanonicalRecord, Field
from marc_evaluator.core.utils                import Utils
from omegaconf                                import OmegaConf
from pathlib                                  import Path
from typing                                   import Any, Iterable

class ConfigurationError(ValueError):
    """
    Raised when a selector configuration cannot produce meaningful weighted scores.
    """

# -------------------- Field Selector --------------------

@dataclass(frozen = True)
class FieldSelector:
    """
    Named rule extracting one comparable text value from a record.

    Tags are tried in priority order; an 'X' in a tag matches any character
    ('6XX' covers every subject field). With mode 'first' the first field found
    supplies the value, with mode 'all' every matching field is joined with '; '.
    Positions slice a control field value, e.g. (35, 38) for the language code in 008.
    """
    name      : str
    tags      : tuple[str, ...]
    weight    : float
    codes     : tuple[str, ...]        = ()        # Sub-value codes to keep; empty keeps all
    mode      : str                    = 'first'
    positions : tuple[int, int] | None = None      # Start and end of a control field slice

    MODES          = ('first', 'all')
    JOIN_SEPARATOR = '; '
    TRAILING_ISBD  = ' /:;,='            # Trailing punctuation stripped from extracted values

    def __post_init__(self):
        if not self.name:
            raise ConfigurationError("Selector name must not be empty")
        if not self.tags:
            raise ConfigurationError(f"Selector '{self.name}' has no tags")
        if any(len(tag) != 3 for tag in self.tags):
            raise ConfigurationError(f"Selector '{self.name}' has a tag that is not 3 characters: {list(self.tags)}")
        if isinstance(self.weight, bool) or not isinstance(self.weight, (int, float)) or not math.isfinite(self.weight):
            raise ConfigurationError(f"Selector '{self.name}' has a non-numeric weight: {self.weight!r}")
        if self.weight < 0:
            raise ConfigurationError(f"Selector '{self.name}' has a negative weight: {self.weight}")
        if self.mode not in self.MODES:
            raise ConfigurationError(f"Selector '{self.name}' has unknown mode '{self.mode}'")
        if self.positions is not None and not self.valid_positions(self.positions):
            raise ConfigurationError(f"Selector '{self.name}' has invalid positions: {self.positions!r}")

    @classmethod
    def from_dict(cls, entry: dict[str, Any]) -> 'FieldSelector':
        """
        Builds a selector from a configuration mapping.

        Args:
            entry : Mapping with 'name', 'tags', 'weight' and optional 'codes', 'mode' and 'positions'.
                    'tags' and 'codes' may be a single string or a list.

        Returns:
            FieldSelector: The validated selector
        """
        if 'name' not in entry or 'tags' not in entry or 'weight' not in entry:
            raise ConfigurationError(f"Selector entry needs 'name', 'tags' and 'weight': {entry}")

        tags      = entry['tags']
        codes     = entry.get('codes') or ()
        positions = entry.get('positions')
        tags      = (tags,) if isinstance(tags, str) else tuple(str(tag) for tag in tags)
        codes     = tuple(codes) if isinstance(codes, str) else tuple(str(code) for code in codes)

        return cls(
            name      = str(entry['name']),
            tags      = tags,
            weight    = entry['weight'],
            codes     = codes,
            mode      = entry.get('mode', 'first'),
            positions = tuple(positions) if isinstance(positions, (list, tuple)) else positions
        )

    def to_dict(self) -> dict[str, Any]:
        data = {
            'name'   : self.name,
            'tags'   : list(self.tags),
            'codes'  : list(self.codes),
            'weight' : self.weight,
            'mode'   : self.mode
        }
        if self.positions is not None:
            data['positions'] = list(self.positions)
        return data

    def covers(self, tag: str) -> bool:
        """
        Reports whether a field tag falls under one of this selector's tag patterns.
        """
        return any(self.covers_with(pattern, tag) for pattern in self.tags)

    def extract(self, record: CanonicalRecord) -> str:
        """
        Extracts this selector's raw (un-normalized) value from a record.

        Returns:
            str: The extracted value, or an empty string when the record has none
        """
        values = []
        for pattern in self.tags:
            for field in record.fields:
                if not self.covers_with(pattern, field.tag):
                    continue

                value = self.field_value(field).rstrip(self.TRAILING_ISBD)
                if value:
                    values.append(value)

        if not values:
            return ''

        return values[0] if self.mode == 'first' else self.JOIN_SEPARATOR.join(values)

    def field_value(self, field: Field) -> str:
        if self.positions is not None and field.is_control:
            start, end = self.positions
            return field.value[start:end].strip()
        return field.text(self.codes)

    @staticmethod
    def valid_positions(positions: Any) -> bool:
        return (
            isinstance(positions, tuple) and len(positions) == 2
            and all(isinstance(position, int) and not isinstance(position, bool) for position in positions)
            and 0 <= positions[0] < positions[1]
        )

    @staticmethod
    def covers_with(pattern: str, tag: str) -> bool:
        return len(pattern) == len(tag) and all(p in ('X', c) for p, c in zip(pattern, tag))

# -------------------- Selector Configuration --------------------

@dataclass(frozen = True)
class SelectorConfig:
    """
    Immutable, ordered set of weighted selectors used for one evaluation run.
    The sum of the weights is the normalization denominator of the overall score.
    """
    selectors : tuple[FieldSelector, ...]
    name      : str = 'custom'

    CONFIG_FILE = Utils.config_path('evaluator.yml')

    def __post_init__(self):
        if not self.selectors:
            raise ConfigurationError(f"Selector configuration '{self.name}' is empty")

        names = [selector.name for selector in self.selectors]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise ConfigurationError(f"Duplicate selector names in '{self.name}': {duplicates}")

        if self.total_weight <= 0:
            raise ConfigurationError(f"Selector configuration '{self.name}' has a total weight of zero")

    @classmethod
    def from_dicts(cls, entries: Iterable[dict[str, Any]], name: str = 'custom') -> 'SelectorConfig':
        return cls(selectors = tuple(FieldSelector.from_dict(entry) for entry in entries), name = name)

    @classmethod
    def from_profile(cls, profile: str | None = None, config_file: Path | None = None) -> 'SelectorConfig':
        """
        Loads a named selector profile from the evaluator YAML configuration.

        Args:
            profile     : Profile name; defaults to evaluation.profile in the config file
            config_file : Optional custom path to evaluator.yml

        Returns:
            SelectorConfig: The validated configuration

        Raises:
            ConfigurationError: If the profile does not exist or is invalid
        """
        config   = OmegaConf.load(config_file or cls.CONFIG_FILE)
        profile  = profile or config.evaluation.profile
        profiles = OmegaConf.to_container(config.profiles, resolve = True)

        if profile not in profiles:
            raise ConfigurationError(f"Unknown selector profile '{profile}'; available: {sorted(profiles)}")

        return cls.from_dicts(profiles[profile], name = profile)

    def to_dicts(self) -> list[dict[str, Any]]:
        return [selector.to_dict() for selector in self.selectors]

    @property
    def names(self) -> list[str]:
        return [selector.name for selector in self.selectors]

    @property
    def total_weight(self) -> float:
        return sum(selector.weight for selector in self.selectors)

    def covers(self, tag: str) -> bool:
        return any(selector.covers(tag) for selector in self.selectors)

    def __iter__(self):
        return iter(self.selectors)

    def __len__(self) -> int:
        return len(self.selectors)
