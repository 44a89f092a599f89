from datetime                                  import date
from marc_evaluator.core.dataset_loader.models import InstitutionalBooksRecord
from marc_evaluator.core.record_parser.models  import BLANK_INDICATOR, CanonicalRecord, Field, SubValue

# -------------------- Constants --------------------

LEADER   = '00000nam  2200000   4500'
FILL     = '|'                      # 008 fill character: no attempt to code
BLANK    = BLANK_INDICATOR
ARTICLES = ('the ', 'an ', 'a ')    # Leading articles skipped for filing in 245

def fixed_length_data(record: InstitutionalBooksRecord, entered_on: date | None = None) -> str:
    """
    Builds the 40-character 008 value.

    Positions: 00-05 date entered (yymmdd), 06 type of date, 07-10 date 1,
    11-14 date 2, 15-17 place, 18-34 material specific, 35-37 language,
    38 modified record, 39 cataloging source.
    """
    def coded(value: str, width: int) -> str:
        return value.strip()[:width].ljust(width, FILL)

    entered = entered_on.strftime('%y%m%d') if entered_on else FILL * 6

    return ''.join((
        entered,
        coded(record.date_types_src, 1),
        coded(record.date1_src, 4),
        coded(record.date2_src, 4),
        FILL * 3,
        FILL * 17,
        coded(record.language_src, 3),
        FILL,
        'd'
    ))

def nonfiling_characters(title: str) -> str:
    """
    Second 245 indicator: length of a leading article, '0' when there is none.
    """
    lowered = title.lower()
    for article in ARTICLES:
        if lowered.startswith(article):
            return str(len(article))
    return '0'

def data_field(tag: str, indicators: tuple[str, str], code: str, text: str) -> Field:
    return Field.structured(tag, indicators, [SubValue(code, text.strip())])

def metadata_to_canonical_record(record: InstitutionalBooksRecord, entered_on: date | None = None) -> CanonicalRecord:
    """
    Converts Institutional Books source metadata into a reference record.

    The result is a pure function of its inputs: the 008 date-entered positions use
    entered_on when given and are filled with '|' otherwise.

    Args:
        record     : Source metadata for one volume
        entered_on : Optional date recorded in 008 positions 00-05

    Returns:
        CanonicalRecord: Reference record in canonical field order
    """
    fields = [Field.control('008', fixed_length_data(record, entered_on))]

    for isbn in record.identifiers_src.isbn:
        fields.append(data_field('020', (BLANK, BLANK), 'a', isbn))

    if record.identifiers_src.lccn:
        fields.append(data_field('050', (BLANK, '4'), 'a', record.identifiers_src.lccn[0]))

    if record.author_src:
        fields.append(data_field('100', ('1', BLANK), 'a', record.author_src))

    if record.title_src:
        indicators = ('1' if record.author_src else '0', nonfiling_characters(record.title_src))
        fields.append(data_field('245', indicators, 'a', record.title_src))

    if record.date1_src:
        fields.append(data_field('264', (BLANK, '1'), 'c', record.date1_src))

    if record.general_note_src:
        fields.append(data_field('500', (BLANK, BLANK), 'a', record.general_note_src))

    if record.topic_or_subject_src:
        fields.append(data_field('650', (BLANK, '0'), 'a', record.topic_or_subject_src))

    if record.genre_or_form_src:
        fields.append(data_field('655', (BLANK, '7'), 'a', record.genre_or_form_src))

    return CanonicalRecord.from_fields(fields, leader = LEADER, source_format = 'mnemonic')

def canonical_record_to_mnemonic(record: CanonicalRecord) -> str:
    """
    Serializes a record to mnemonic text that RecordParser reads back to an equal record.
    """
    return record.to_mnemonic()
