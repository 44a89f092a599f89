"""
Unit tests for FieldSelector extraction and SelectorConfig validation.
"""

import pytest

from marc_evaluator.core.field_comparator import ConfigurationError, FieldSelector, SelectorConfig

class TestFieldSelector:
    """Tests for value extraction."""

    def test_extract_when_codes_given_then_joins_and_trims_punctuation(self, make_record):
        # Arrange
        record   = make_record("=245  14$aThe Great Gatsby :$bA novel /$cF. Scott Fitzgerald.")
        selector = FieldSelector(name = 'title', tags = ('245',), weight = 1.0, codes = ('a', 'b'))

        # Act / Assert
        assert selector.extract(record) == 'The Great Gatsby : A novel'

    def test_extract_when_tags_in_priority_order_then_first_found_wins(self, make_record):
        # Arrange
        record   = make_record("=260  \\\\$c1925.", "=264  \\1$c2004.")
        selector = FieldSelector(name = 'date', tags = ('264', '260'), weight = 1.0, codes = ('c',))

        # Act / Assert
        assert selector.extract(record) == '2004.'

    def test_extract_when_mode_all_then_joins_every_occurrence(self, make_record):
        # Arrange
        record   = make_record("=650  \\0$aRich people", "=651  \\0$aLong Island (N.Y.)", "=650  \\0$aWealth.")
        selector = FieldSelector(name = 'subject', tags = ('6XX',), weight = 1.0, codes = ('a',), mode = 'all')

        # Act / Assert
        assert selector.extract(record) == 'Rich people; Wealth.; Long Island (N.Y.)'

    def test_extract_when_field_absent_then_empty(self, make_record):
        # Arrange
        record   = make_record("=245  10$aTitle")
        selector = FieldSelector(name = 'isbn', tags = ('020',), weight = 1.0)

        # Act / Assert
        assert selector.extract(record) == ''

    def test_extract_when_control_field_then_returns_value(self, make_record):
        # Arrange
        record   = make_record("=001  ocm12345678", "=245  10$aTitle")
        selector = FieldSelector(name = 'control_number', tags = ('001',), weight = 1.0)

        # Act / Assert
        assert selector.extract(record) == 'ocm12345678'

    def test_covers_when_wildcard_then_matches_any_character(self):
        # Arrange
        selector = FieldSelector(name = 'subject', tags = ('6XX',), weight = 1.0)

        # Act / Assert
        assert selector.covers('650')
        assert selector.covers('655')
        assert not selector.covers('700')

    def test_from_dict_when_single_strings_then_wraps_in_tuples(self):
        # Act
        selector = FieldSelector.from_dict({'name': 'isbn', 'tags': '020', 'codes': 'a', 'weight': 0.1})

        # Assert
        assert selector.tags == ('020',)
        assert selector.codes == ('a',)
        assert selector.to_dict() == {'name': 'isbn', 'tags': ['020'], 'codes': ['a'], 'weight': 0.1, 'mode': 'first'}

    def test_extract_when_positions_given_then_slices_control_field(self, make_record):
        # Arrange
        record   = make_record("=008  040115s2004    nyu           000 1 eng d", "=245  10$aTitle")
        selector = FieldSelector.from_dict({'name': 'language', 'tags': '008', 'positions': [35, 38], 'weight': 1})

        # Act / Assert
        assert selector.positions == (35, 38)
        assert selector.extract(record) == 'eng'
        assert selector.to_dict()['positions'] == [35, 38]

    @pytest.mark.parametrize('positions', [[38, 35], [35], [-1, 3], [35.0, 38], '35-38'])
    def test_from_dict_when_positions_invalid_then_raises(self, positions):
        with pytest.raises(ConfigurationError, match = 'invalid positions'):
            FieldSelector.from_dict({'name': 'language', 'tags': '008', 'positions': positions, 'weight': 1})

class TestSelectorConfig:
    """Tests for configuration loading and validation."""

    def test_from_profile_when_full_then_loads_ten_weighted_selectors(self, full_config):
        assert full_config.name == 'full'
        assert full_config.names == [
            'isbn', 'personal_author', 'corporate_author', 'title', 'edition',
            'publication', 'publication_rda', 'physical_description', 'subject', 'added_author'
        ]
        assert full_config.total_weight == pytest.approx(1.15)

    def test_from_profile_when_basic_then_loads_headline_selectors(self):
        # Act
        config = SelectorConfig.from_profile('basic')

        # Assert
        assert config.names == ['title', 'author', 'date', 'isbn', 'subject']
        assert config.total_weight == pytest.approx(1.0)
        assert config.selectors[2].tags == ('260', '264')

    def test_from_profile_when_metadata_then_reads_language_from_008(self):
        # Act
        config = SelectorConfig.from_profile('metadata')

        # Assert
        assert config.names == ['title', 'author', 'date', 'isbn', 'language', 'subject']
        assert config.total_weight == 6
        assert config.selectors[4].tags == ('008',)
        assert config.selectors[4].positions == (35, 38)

    def test_from_profile_when_unknown_then_raises(self):
        with pytest.raises(ConfigurationError, match = 'Unknown selector profile'):
            SelectorConfig.from_profile('nonexistent')

    def test_from_profile_when_custom_file_then_reads_it(self, tmp_path):
        # Arrange
        config_file = tmp_path / 'evaluator.yml'
        config_file.write_text(
            "evaluation:\n  profile: titles\n"
            "profiles:\n  titles:\n    - {name: title, tags: ['245'], weight: 2}\n",
            encoding = 'utf-8'
        )

        # Act
        config = SelectorConfig.from_profile(config_file = config_file)

        # Assert
        assert config.name == 'titles'
        assert config.total_weight == 2

    @pytest.mark.parametrize('entries, message', [
        ([],                                                                   'empty'),
        ([{'name': 'title', 'tags': ['245'], 'weight': -0.1}],                 'negative'),
        ([{'name': 'title', 'tags': ['245'], 'weight': 'heavy'}],              'non-numeric'),
        ([{'name': 'title', 'tags': ['245'], 'weight': True}],                 'non-numeric'),
        ([{'name': 'title', 'tags': ['245'], 'weight': float('nan')}],         'non-numeric'),
        ([{'name': 'title', 'tags': ['245'], 'weight': 0}],                    'total weight'),
        ([{'name': 'title', 'tags': [], 'weight': 1}],                         'no tags'),
        ([{'name': 'title', 'tags': ['24'], 'weight': 1}],                     '3 characters'),
        ([{'name': 'title', 'tags': ['245'], 'weight': 1, 'mode': 'longest'}], 'unknown mode'),
        ([{'name': 'title', 'tags': ['245']}],                                 'needs'),
        ([{'name': 'title', 'tags': ['245'], 'weight': 1},
          {'name': 'title', 'tags': ['246'], 'weight': 1}],                    'Duplicate')
    ])
    def test_from_dicts_when_invalid_then_raises(self, entries, message):
        with pytest.raises(ConfigurationError, match = message):
            SelectorConfig.from_dicts(entries)

    def test_configuration_error_is_value_error(self):
        assert issubclass(ConfigurationError, ValueError)

    def test_covers_when_tag_under_any_selector_then_true(self, full_config):
        assert full_config.covers('245')
        assert not full_config.covers('500')
