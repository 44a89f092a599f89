import io
import re

from marc_evaluator.core.module_logger        import ModuleLogger
from marc_evaluator.core.record_parser.models import (
    BLANK_INDICATOR, DOLLAR_ESCAPE, LEADER_STATUS_POSITION, WITHDRAWN_STATUS,
    CanonicalRecord, Field, SubValue
)
from pymarc      import MARCReader, parse_xml_to_array
from xml.sax     import SAXException

logger = ModuleLogger('parser')()

class ParseError(ValueError):
    """
    Raised when raw input holds no usable bibliographic record.
    """

class RecordParser:
    """
    Turns raw record text or bytes into a CanonicalRecord.

    Three encodings are understood:
        mnemonic : line-oriented text, one field per line ('=245  10$aTitle' or '245 10 $a Title')
        xml      : MARCXML, a <record> element with leader, control and data elements
        iso2709  : binary transmission format with directory and terminators

    When no format is declared it is detected from the input itself.
    """

    # -------------------- Class Constants --------------------

    FORMATS             = ('mnemonic', 'xml', 'iso2709')
    BLANK_CHARS         = {'\\', '#', '_', ' '}
    MARKUP_PATTERN      = re.compile(rb'<(\?xml|(\w+:)?(record|collection)\b)')
    TRANSMISSION_HEADER = re.compile(rb'^\d{5}')
    LEADER_ELEMENT      = re.compile(r'<(?:\w+:)?leader[^>]*>([^<]*)<')
    BARE_LEADER_PATTERN = re.compile(r'^[\d ]{5}[a-z ][a-z]')
    FIELD_LINE_PATTERN  = re.compile(r'^=?(?P<tag>LDR|\d{3})(?=\s|\$|$)(?P<rest>.*)$')
    SUBVALUE_PATTERN    = re.compile(r'\$([^\s$])([^$]*)')
    MIN_LEADER_LENGTH   = LEADER_STATUS_POSITION + 1

    def __init__(self, max_record_bytes: int | None = None):
        """
        Initializes the RecordParser instance.

        Args:
            max_record_bytes : Optional size cap; larger inputs are rejected with ParseError
        """
        self.max_record_bytes = max_record_bytes

    # -------------------- Public Interface --------------------

    def parse(self, raw: bytes | str, declared_format: str | None = None) -> CanonicalRecord:
        """
        Parses one raw record.

        Args:
            raw             : Raw record as bytes or text
            declared_format : One of FORMATS, or None to auto-detect

        Returns:
            CanonicalRecord: The parsed record

        Raises:
            ParseError: If the input is empty, oversized, undecodable or holds no fields
        """
        data          = self.to_bytes(raw)
        record_format = self.resolve_format(data, declared_format)

        if record_format == 'xml':
            record = self.parse_xml(data)
        elif record_format == 'iso2709':
            record = self.parse_transmission(data)
        else:
            record = self.parse_mnemonic(self.decode(data))

        if not record.fields:
            raise ParseError(f"No fields found in {record_format} record")

        return record

    def is_withdrawn(self, raw: bytes | str, declared_format: str | None = None) -> bool:
        """
        Reports whether the record header flags the record as withdrawn,
        reading only the leader rather than parsing every field.
        """
        data          = self.to_bytes(raw)
        record_format = self.resolve_format(data, declared_format)

        if record_format == 'iso2709':
            status = data[LEADER_STATUS_POSITION:LEADER_STATUS_POSITION + 1].decode('ascii', errors = 'replace')
            return status == WITHDRAWN_STATUS

        text = self.decode(data)
        if record_format == 'xml':
            match  = self.LEADER_ELEMENT.search(text)
            leader = match.group(1) if match else ''
        else:
            leader = self.find_mnemonic_leader(text.splitlines())

        return len(leader) > LEADER_STATUS_POSITION and leader[LEADER_STATUS_POSITION] == WITHDRAWN_STATUS

    def detect_format(self, data: bytes) -> str:
        """
        Guesses the encoding of raw input from markup tokens and transmission terminators.
        """
        if self.MARKUP_PATTERN.search(data):
            return 'xml'
        if self.TRANSMISSION_HEADER.match(data) and b'\x1e' in data and b'\x1d' in data:
            return 'iso2709'
        return 'mnemonic'

    # -------------------- Input Preparation --------------------

    def to_bytes(self, raw: bytes | str) -> bytes:
        data = raw.encode('utf-8') if isinstance(raw, str) else bytes(raw or b'')

        if not data.strip():
            raise ParseError("Empty record")
        if self.max_record_bytes is not None and len(data) > self.max_record_bytes:
            raise ParseError(f"Record of {len(data)} bytes exceeds limit of {self.max_record_bytes}")

        return data

    def resolve_format(self, data: bytes, declared_format: str | None) -> str:
        if declared_format is None:
            return self.detect_format(data)

        record_format = declared_format.lower()
        if record_format not in self.FORMATS:
            raise ParseError(f"Unknown record format '{declared_format}'")
        return record_format

    @staticmethod
    def decode(data: bytes) -> str:
        try:
            return data.decode('utf-8-sig')
        except UnicodeDecodeError as e:
            raise ParseError(f"Cannot decode record text: {e}") from e

    # -------------------- Mnemonic Format --------------------

    def find_mnemonic_leader(self, lines: list[str]) -> str:
        """
        Returns the leader of a mnemonic record, from an LDR line or a bare first line.
        """
        for line in lines:
            line = line.strip()
            if not line:
                continue

            match = self.FIELD_LINE_PATTERN.match(line)
            if match and match.group('tag') == 'LDR':
                return match.group('rest').strip()
            if not match and '$' not in line and self.BARE_LEADER_PATTERN.match(line):
                return line
            if match:
                return ''
        return ''

    def parse_mnemonic(self, text: str) -> CanonicalRecord:
        """
        Parses line-oriented mnemonic text. Lines that are not fields, such as
        prose or code fences around generated output, are skipped.
        """
        lines  = text.splitlines()
        leader = self.find_mnemonic_leader(lines)
        fields = []

        if leader and len(leader) < self.MIN_LEADER_LENGTH:
            raise ParseError(f"Cannot decode record header '{leader}'")

        for line in lines:
            field = self.parse_mnemonic_line(line.rstrip('\r\n'))
            if field is not None:
                fields.append(field)

        return CanonicalRecord.from_fields(fields, leader = leader, source_format = 'mnemonic')

    def parse_mnemonic_line(self, line: str) -> Field | None:
        match = self.FIELD_LINE_PATTERN.match(line.lstrip())
        if not match:
            return None

        tag, rest = match.group('tag'), match.group('rest')

        if tag == 'LDR':
            return None

        if tag.startswith('00'):
            return Field.control(tag, rest.lstrip())

        dollar_index = rest.find('$')
        if dollar_index < 0:
            return None

        indicators = self.split_indicators(rest[:dollar_index])
        subvalues  = [
            SubValue(code = code, text = value.strip().replace(DOLLAR_ESCAPE, '$'))
            for code, value in self.SUBVALUE_PATTERN.findall(rest[dollar_index:])
        ]

        if not subvalues:
            return None

        return Field.structured(tag, indicators, subvalues)

    def split_indicators(self, region: str) -> tuple[str, str]:
        """
        Reads the two indicator characters between a tag and its first sub-value.

        The region holds one separator before the indicators and, in the spaced
        form ('245 00 $a'), one more before the first '$'.
        """
        if region[:1].isspace():
            region = region[1:]
        if len(region) > 2 and region[-1].isspace():
            region = region[:-1]

        region = region[-2:] if len(region) > 2 else region.ljust(2)
        first, second = (BLANK_INDICATOR if char in self.BLANK_CHARS else char for char in region)
        return first, second

    # -------------------- Markup and Transmission Formats --------------------

    def parse_xml(self, data: bytes) -> CanonicalRecord:
        """
        Parses MARCXML, tolerating text around the markup such as code fences.
        """
        start, end = data.find(b'<'), data.rfind(b'>')
        if start < 0 or end < start:
            raise ParseError("No markup found in XML record")

        try:
            records = parse_xml_to_array(io.BytesIO(data[start:end + 1]), strict = False)
        except (SAXException, KeyError, ValueError) as e:
            raise ParseError(f"Malformed XML record: {e!r}") from e

        records = [record for record in records if record is not None]
        if not records:
            raise ParseError("No <record> element found")
        if len(records) > 1:
            logger.warning(f"XML input holds {len(records)} records; using the first")

        return self.from_pymarc(records[0], source_format = 'xml')

    def parse_transmission(self, data: bytes) -> CanonicalRecord:
        reader = MARCReader(io.BytesIO(data), to_unicode = True, force_utf8 = True)
        record = next(iter(reader), None)

        if record is None:
            raise ParseError(f"Cannot decode record header: {reader.current_exception}")

        return self.from_pymarc(record, source_format = 'iso2709')

    @staticmethod
    def from_pymarc(record, source_format: str) -> CanonicalRecord:
        """
        Converts a pymarc Record into a CanonicalRecord.
        """
        fields = []
        for marc_field in record.fields:
            if marc_field.is_control_field():
                fields.append(Field.control(marc_field.tag, marc_field.data or ''))
                continue

            indicators = (marc_field.indicator1 or BLANK_INDICATOR, marc_field.indicator2 or BLANK_INDICATOR)
            subvalues  = [SubValue(code = subfield.code, text = subfield.value or '') for subfield in marc_field.subfields]
            fields.append(Field.structured(marc_field.tag, indicators, subvalues))

        leader = str(record.leader) if record.leader is not None else ''
        return CanonicalRecord.from_fields(fields, leader = leader, source_format = source_format)
