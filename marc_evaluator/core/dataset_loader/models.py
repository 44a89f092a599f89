from dataclasses import asdict, dataclass, field
from typing      import Any

class DatasetError(ValueError):
    """
    Raised when a dataset file has an unsupported format or cannot be decoded.
    """

# -------------------- Institutional Books --------------------

@dataclass(frozen = True)
class Identifiers:
    """
    Bibliographic identifiers attached to a source record.
    """
    lccn  : tuple[str, ...] = ()   # Library of Congress Control Numbers
    isbn  : tuple[str, ...] = ()
    ocolc : tuple[str, ...] = ()   # OCLC control numbers

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> 'Identifiers':
        data = data or {}
        return cls(**{key: tuple(str(value) for value in data.get(key) or ()) for key in ('lccn', 'isbn', 'ocolc')})

@dataclass(frozen = True)
class InstitutionalBooksRecord:
    """
    Source metadata for one volume of the Institutional Books dataset.
    Values are catalog metadata and serve as ground truth for generated records.
    """
    barcode_src          : str
    title_src            : str             = ''
    author_src           : str             = ''
    date1_src            : str             = ''
    date2_src            : str             = ''
    date_types_src       : str             = ''
    language_src         : str             = ''   # ISO 639 code
    topic_or_subject_src : str             = ''
    genre_or_form_src    : str             = ''
    general_note_src     : str             = ''
    identifiers_src      : Identifiers     = field(default_factory = Identifiers)
    text_by_page_src     : tuple[str, ...] = ()   # Original OCR text
    text_by_page_gen     : tuple[str, ...] = ()   # Post-processed OCR text
    page_count_src       : int             = 0

    TEXT_FIELDS = (
        'title_src', 'author_src', 'date1_src', 'date2_src', 'date_types_src', 'language_src',
        'topic_or_subject_src', 'genre_or_form_src', 'general_note_src'
    )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> 'InstitutionalBooksRecord':
        """
        Builds a record from a decoded JSON object or dataset row; null values become empty.
        """
        return cls(
            barcode_src      = str(data.get('barcode_src') or ''),
            identifiers_src  = Identifiers.from_dict(data.get('identifiers_src')),
            text_by_page_src = tuple(data.get('text_by_page_src') or ()),
            text_by_page_gen = tuple(data.get('text_by_page_gen') or ()),
            page_count_src   = int(data.get('page_count_src') or 0),
            **{name: str(data.get(name) or '') for name in cls.TEXT_FIELDS}
        )

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data['identifiers_src'] = {key: list(value) for key, value in data['identifiers_src'].items()}
        data['text_by_page_src'] = list(self.text_by_page_src)
        data['text_by_page_gen'] = list(self.text_by_page_gen)
        return data

# -------------------- Evaluation Dataset --------------------

@dataclass(frozen = True)
class DatasetItem:
    """
    One evaluation item: a reference record plus optional generated record and page images.
    """
    id                  : str
    reference_marc      : str
    reference_format    : str | None = None
    generated_marc      : str | None = None
    generated_format    : str | None = None
    cover_image_path    : str | None = None
    title_page_path     : str | None = None
    copyright_page_path : str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {key: value for key, value in asdict(self).items() if value is not None}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> 'DatasetItem':
        if 'id' not in data or 'reference_marc' not in data:
            raise DatasetError(f"Dataset item needs 'id' and 'reference_marc': {sorted(data)}")

        return cls(
            id                  = str(data['id']),
            reference_marc      = data['reference_marc'],
            reference_format    = data.get('reference_format'),
            generated_marc      = data.get('generated_marc'),
            generated_format    = data.get('generated_format'),
            cover_image_path    = data.get('cover_image_path'),
            title_page_path     = data.get('title_page_path'),
            copyright_page_path = data.get('copyright_page_path')
        )

@dataclass
class EvaluationDataset:
    """
    Collection of evaluation items stored as dataset.json.
    """
    items : list[DatasetItem] = field(default_factory = list)

    def to_dict(self) -> dict[str, Any]:
        return {'items': [item.to_dict() for item in self.items]}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> 'EvaluationDataset':
        if not isinstance(data, dict) or not isinstance(data.get('items', []), list):
            raise DatasetError("Dataset must be an object with an 'items' list")
        return cls(items = [DatasetItem.from_dict(item) for item in data.get('items', [])])

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self):
        return iter(self.items)
