from dataclasses import dataclass
from typing      import Iterable, Iterator

# -------------------- Constants --------------------

BLANK_INDICATOR        = ' '
DOLLAR_ESCAPE          = '{dollar}'  # Mnemonic spelling of a literal '$' inside a sub-value
LEADER_STATUS_POSITION = 5      # Record status byte within the 24-character leader
WITHDRAWN_STATUS       = 'd'    # 'd' = deleted / suppressed

# -------------------- Data Classes --------------------

@dataclass(frozen = True)
class SubValue:
    """
    A single labeled value inside a structured field (a MARC subfield).
    """
    code : str
    text : str

@dataclass(frozen = True)
class Field:
    """
    One bibliographic field, either a control field carrying a single opaque
    value or a structured field with two indicators and ordered sub-values.
    """
    tag        : str
    value      : str | None           = None               # Set only for control fields
    indicators : tuple[str, str]      = (BLANK_INDICATOR, BLANK_INDICATOR)
    subvalues  : tuple[SubValue, ...] = ()

    @classmethod
    def control(cls, tag: str, value: str) -> 'Field':
        return cls(tag = tag, value = value)

    @classmethod
    def structured(
        cls,
        tag        : str,
        indicators : tuple[str, str],
        subvalues  : Iterable[SubValue]
    ) -> 'Field':
        return cls(tag = tag, indicators = tuple(indicators), subvalues = tuple(subvalues))

    @property
    def is_control(self) -> bool:
        return self.value is not None

    def get_subvalues(self, *codes: str) -> list[str]:
        """
        Returns sub-value texts in field order, restricted to the given codes.
        An empty code list selects every sub-value.
        """
        return [
            subvalue.text for subvalue in self.subvalues
            if not codes or subvalue.code in codes
        ]

    def text(self, codes: Iterable[str] = ()) -> str:
        """
        Flattens the field into one comparable string.

        Args:
            codes : Sub-value codes to keep (all codes when empty)

        Returns:
            str: Control value, or the selected sub-values joined by single spaces
        """
        if self.is_control:
            return self.value.strip()

        parts = (part.strip() for part in self.get_subvalues(*codes))
        return ' '.join(part for part in parts if part)

    def __str__(self) -> str:
        if self.is_control:
            return f"={self.tag}  {self.value}"

        indicators = ''.join('\\' if ind == BLANK_INDICATOR else ind for ind in self.indicators)
        subvalues  = ''.join(
            f"${subvalue.code}{subvalue.text.replace('$', DOLLAR_ESCAPE)}" for subvalue in self.subvalues
        )
        return f"={self.tag}  {indicators}{subvalues}"

@dataclass(frozen = True)
class CanonicalRecord:
    """
    Format-independent representation of one bibliographic record.

    Fields are held in ascending tag order when every tag is numeric; otherwise
    the source order is kept. Instances are never mutated after parsing.
    """
    fields        : tuple[Field, ...]
    leader        : str = ''
    source_format : str = 'mnemonic'

    @classmethod
    def from_fields(
        cls,
        fields        : Iterable[Field],
        leader        : str = '',
        source_format : str = 'mnemonic'
    ) -> 'CanonicalRecord':
        """
        Builds a record, applying the canonical field ordering.
        The sort is stable, so repeated tags keep their relative source order.
        """
        fields = tuple(fields)

        if all(field.tag.isdigit() for field in fields):
            fields = tuple(sorted(fields, key = lambda field: field.tag))

        return cls(fields = fields, leader = leader, source_format = source_format)

    @property
    def status(self) -> str:
        if len(self.leader) > LEADER_STATUS_POSITION:
            return self.leader[LEADER_STATUS_POSITION]
        return ''

    @property
    def is_withdrawn(self) -> bool:
        return self.status == WITHDRAWN_STATUS

    def get_fields(self, *tags: str) -> list[Field]:
        """
        Returns the fields carrying any of the given tags, in record order.
        """
        return [field for field in self.fields if field.tag in tags]

    def tags(self) -> list[str]:
        """
        Returns the distinct tags of the record in order of first appearance.
        """
        return list(dict.fromkeys(field.tag for field in self.fields))

    def to_mnemonic(self) -> str:
        """
        Serializes the record back to line-oriented mnemonic text.
        """
        lines = [f"=LDR  {self.leader}"] if self.leader else []
        lines.extend(str(field) for field in self.fields)
        return '\n'.join(lines) + '\n'

    def __iter__(self) -> Iterator[Field]:
        return iter(self.fields)

    def __len__(self) -> int:
        return len(self.fields)
