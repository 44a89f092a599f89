"""
Unit tests for building reference records from Institutional Books metadata.
"""

import pytest

from datetime                                 import date
from marc_evaluator.core.dataset_loader       import InstitutionalBooksRecord
from marc_evaluator.core.ground_truth         import canonical_record_to_mnemonic, metadata_to_canonical_record
from marc_evaluator.core.ground_truth.builder import fixed_length_data, nonfiling_characters

@pytest.fixture
def source_record() -> InstitutionalBooksRecord:
    return InstitutionalBooksRecord.from_dict({
        'barcode_src'          : '32044012345678',
        'title_src'            : 'The Great Gatsby',
        'author_src'           : 'Fitzgerald, F. Scott',
        'date1_src'            : '1925',
        'date_types_src'       : 's',
        'language_src'         : 'eng',
        'topic_or_subject_src' : 'Rich people',
        'genre_or_form_src'    : 'Fiction',
        'general_note_src'     : 'First edition.',
        'identifiers_src'      : {'lccn': ['25010468'], 'isbn': ['9780743273565', '0743273567'], 'ocolc': []}
    })

class TestMetadataToCanonicalRecord:
    """Tests for metadata_to_canonical_record()."""

    def test_build_when_full_metadata_then_emits_expected_tags(self, source_record):
        # Act
        record = metadata_to_canonical_record(source_record)

        # Assert
        assert record.leader == '00000nam  2200000   4500'
        assert [field.tag for field in record] == ['008', '020', '020', '050', '100', '245', '264', '500', '650', '655']

    def test_build_when_title_has_article_then_sets_indicators(self, source_record):
        # Act
        title = metadata_to_canonical_record(source_record).get_fields('245')[0]

        # Assert
        assert title.indicators == ('1', '4')
        assert title.text() == 'The Great Gatsby'

    def test_build_when_identifiers_then_maps_isbn_and_lccn(self, source_record):
        # Act
        record = metadata_to_canonical_record(source_record)

        # Assert
        assert [field.text('a') for field in record.get_fields('020')] == ['9780743273565', '0743273567']
        assert record.get_fields('050')[0].indicators == (' ', '4')
        assert record.get_fields('050')[0].text() == '25010468'

    def test_build_when_date_given_then_008_is_deterministic(self, source_record):
        # Act
        first  = metadata_to_canonical_record(source_record, entered_on = date(2024, 1, 15))
        second = metadata_to_canonical_record(source_record, entered_on = date(2024, 1, 15))

        # Assert
        value = first.get_fields('008')[0].value
        assert first == second
        assert len(value) == 40
        assert value.startswith('240115s1925')
        assert value[35:38] == 'eng'

    def test_build_when_no_date_then_008_date_filled(self, source_record):
        # Act
        value = metadata_to_canonical_record(source_record).get_fields('008')[0].value

        # Assert
        assert value[:6] == '||||||'

    def test_build_when_minimal_metadata_then_only_present_fields(self):
        # Arrange
        source = InstitutionalBooksRecord.from_dict({'barcode_src': '1', 'title_src': 'Walden', 'author_src': None})

        # Act
        record = metadata_to_canonical_record(source)

        # Assert
        assert record.tags() == ['008', '245']
        assert record.get_fields('245')[0].indicators == ('0', '0')

    def test_mnemonic_when_serialized_then_parses_back_equal(self, parser, source_record):
        # Arrange
        record = metadata_to_canonical_record(source_record, entered_on = date(2024, 1, 15))

        # Act
        reparsed = parser.parse(canonical_record_to_mnemonic(record))

        # Assert
        assert reparsed == record

class TestFixedFields:
    """Tests for the 008 and 245 helpers."""

    @pytest.mark.parametrize('title, expected', [
        ('The Great Gatsby', '4'),
        ('An American Tragedy', '3'),
        ('A Farewell to Arms', '2'),
        ('Theory of Everything', '0'),
        ('Walden', '0')
    ])
    def test_nonfiling_characters_when_leading_article_then_counts_it(self, title, expected):
        assert nonfiling_characters(title) == expected

    def test_fixed_length_data_when_values_missing_then_uses_fill(self):
        # Act
        value = fixed_length_data(InstitutionalBooksRecord(barcode_src = '1'))

        # Assert
        assert value == '|' * 39 + 'd'
