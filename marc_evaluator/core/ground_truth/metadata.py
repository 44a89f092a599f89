import json
import re

from dataclasses                               import asdict, dataclass
from marc_evaluator.core.dataset_loader.models import Identifiers, InstitutionalBooksRecord
from marc_evaluator.core.ground_truth.builder  import metadata_to_canonical_record
from marc_evaluator.core.record_parser         import CanonicalRecord, ParseError
from typing                                    import Any

# Opening fence with an optional language label, and the closing fence.
OPENING_FENCE = re.compile(r'^```[\w-]*\s*')
CLOSING_FENCE = re.compile(r'\s*```$')

def clean_json(text: str) -> str:
    """
    Strips surrounding whitespace and a Markdown code fence from model output.
    """
    text = text.strip()
    text = OPENING_FENCE.sub('', text)
    text = CLOSING_FENCE.sub('', text)
    return text.strip()

@dataclass(frozen = True)
class BookMetadata:
    """
    Bibliographic metadata extracted from a book, as returned by a generator
    asked for JSON rather than a MARC record.
    """
    title            : str             = ''
    author           : str             = ''
    publication_date : str             = ''
    isbn             : tuple[str, ...] = ()
    language         : str             = ''
    subject          : str             = ''
    genre            : str             = ''
    notes            : str             = ''

    TEXT_FIELDS = ('title', 'author', 'publication_date', 'language', 'subject', 'genre', 'notes')

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> 'BookMetadata':
        isbn = data.get('isbn') or ()
        return cls(
            isbn = (str(isbn),) if isinstance(isbn, (str, int)) else tuple(str(value) for value in isbn),
            **{name: str(data.get(name) or '') for name in cls.TEXT_FIELDS}
        )

    @classmethod
    def from_json(cls, text: str) -> 'BookMetadata':
        """
        Decodes a JSON metadata object, tolerating a code fence around it.

        Raises:
            ParseError: If the text is not a JSON object
        """
        try:
            data = json.loads(clean_json(text))
        except json.JSONDecodeError as e:
            raise ParseError(f"Failed to parse metadata JSON: {e}") from e

        if not isinstance(data, dict):
            raise ParseError(f"Metadata JSON must be an object, got {type(data).__name__}")

        return cls.from_dict(data)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data['isbn'] = list(self.isbn)
        return data

    def to_source_record(self) -> InstitutionalBooksRecord:
        """
        Maps the extracted values onto the source metadata fields they correspond to.
        """
        return InstitutionalBooksRecord(
            barcode_src          = '',
            title_src            = self.title,
            author_src           = self.author,
            date1_src            = self.publication_date,
            language_src         = self.language,
            topic_or_subject_src = self.subject,
            genre_or_form_src    = self.genre,
            general_note_src     = self.notes,
            identifiers_src      = Identifiers(isbn = self.isbn)
        )

def book_metadata_to_canonical_record(metadata: BookMetadata) -> CanonicalRecord:
    """
    Builds a candidate record from extracted metadata through the same mapping used
    for reference records, so both sides carry their values in the same fields.
    """
    return metadata_to_canonical_record(metadata.to_source_record())
