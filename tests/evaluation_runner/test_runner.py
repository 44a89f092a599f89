"""
Unit tests for EvaluationRunner and result persistence.
"""

import pytest
import time

from dataclasses                           import replace
from datetime                              import date
from marc_evaluator.core.dataset_loader    import DatasetError, DatasetItem, InstitutionalBooksRecord, load_dataset
from marc_evaluator.core.evaluation_runner import (
    EvaluationRunner, build_reference_dataset, load_results, load_settings, parse_candidate, save_eval_yaml, save_results
)
from ruamel.yaml                           import YAML

@pytest.fixture
def runner(title_author_config) -> EvaluationRunner:
    return EvaluationRunner(title_author_config, max_workers = 4)

@pytest.fixture
def items() -> list[DatasetItem]:
    reference = "=100  1\\$aThoreau, Henry David\n=245  10$aWalden"
    return [
        DatasetItem(id = f'b{index}', reference_marc = reference, generated_marc = reference)
        for index in range(6)
    ]

class TestEvaluationRunner:
    """Tests for EvaluationRunner.run() and evaluate_item()."""

    def test_run_when_workers_finish_out_of_order_then_results_keep_item_order(self, runner, items):
        # Arrange
        delays = {item.id: 0.05 * (len(items) - index) for index, item in enumerate(items)}

        def slow_source(item: DatasetItem) -> str:
            time.sleep(delays[item.id])
            return item.generated_marc

        # Act
        aggregate = runner.run(items, candidate_source = slow_source)

        # Assert
        assert [result.record_id for result in aggregate.results] == [item.id for item in items]
        assert aggregate.success_count == len(items)
        assert aggregate.mean_score == pytest.approx(1.0)

    def test_run_when_source_raises_then_records_failure_and_continues(self, runner, items):
        # Arrange
        def flaky_source(item: DatasetItem) -> str:
            if item.id == 'b2':
                raise TimeoutError('provider timed out')
            return item.generated_marc

        # Act
        aggregate = runner.run(items, candidate_source = flaky_source)

        # Assert
        failed = aggregate.results[2]
        assert aggregate.failure_count == 1
        assert failed.error == 'Failed to generate record: provider timed out'
        assert failed.comparison is None
        assert failed.processing_time >= 0.0

    def test_run_when_metadata_given_then_passed_to_aggregate(self, runner, items):
        # Act
        aggregate = runner.run(items, metadata = {'provider': 'ollama', 'model': 'mistral'})

        # Assert
        assert aggregate.provider == 'ollama'
        assert aggregate.sample_size == len(items)
        assert aggregate.profile == 'title_author'

    @pytest.mark.parametrize('generated', [None, '', '   \n'])
    def test_evaluate_item_when_no_generated_text_then_error(self, runner, items, generated):
        # Act
        result = runner.evaluate_item(items[0], generated)

        # Assert
        assert not result.succeeded
        assert result.error == 'No generated record available'

    def test_evaluate_item_when_candidate_unparseable_then_error(self, runner, items):
        # Act
        result = runner.evaluate_item(items[0], 'I could not find a record for this book.')

        # Assert
        assert not result.succeeded
        assert result.error.startswith('Failed to compare records:')
        assert result.generated_record == 'I could not find a record for this book.'

    def test_evaluate_item_when_records_match_then_exact(self, runner, items):
        # Act
        result = runner.evaluate_item(items[0], items[0].generated_marc)

        # Assert
        assert result.succeeded
        assert result.comparison.overall_score == pytest.approx(1.0)
        assert result.reference_record == items[0].reference_marc

    def test_evaluate_item_when_metadata_candidate_then_compared_as_record(self, runner, items):
        # Arrange
        item      = replace(items[0], generated_format = 'metadata')
        generated = '```json\n{"title": "Walden", "author": "Thoreau, Henry David"}\n```'

        # Act
        result = runner.evaluate_item(item, generated)

        # Assert
        assert result.succeeded
        assert result.comparison.overall_score == pytest.approx(1.0)
        assert result.comparison.total_distance == 0

    def test_evaluate_item_when_metadata_candidate_not_json_then_error(self, runner, items):
        # Act
        result = runner.evaluate_item(replace(items[0], generated_format = 'metadata'), 'Title: Walden')

        # Assert
        assert not result.succeeded
        assert result.error.startswith('Failed to compare records: Failed to parse metadata JSON')

    def test_parse_candidate_when_marc_format_then_uses_parser(self, parser):
        # Act
        record = parse_candidate(parser, '=245  10$aWalden', 'mnemonic')

        # Assert
        assert record.get_fields('245')[0].text() == 'Walden'

    def test_init_when_no_workers_then_raises(self, title_author_config):
        with pytest.raises(ValueError, match = 'max_workers'):
            EvaluationRunner(title_author_config, max_workers = 0)

    def test_from_settings_when_overrides_then_uses_them(self):
        # Arrange
        settings = load_settings(overrides = {'evaluation': {'profile': 'basic', 'max_workers': 2}})

        # Act
        runner = EvaluationRunner.from_settings(settings)

        # Assert
        assert runner.config.name == 'basic'
        assert runner.max_workers == 2
        assert runner.parser.max_record_bytes == settings.evaluation.max_record_bytes

class TestResultPersistence:
    """Tests for results.json, eval YAML and reference datasets."""

    def test_save_then_load_results_when_aggregate_then_equal(self, runner, items, tmp_path):
        # Arrange
        aggregate = runner.run(items, metadata = {'provider': 'ollama', 'model': 'mistral'})

        # Act
        save_results(aggregate, tmp_path)
        loaded = load_results(tmp_path)

        # Assert
        assert loaded.to_dict() == aggregate.to_dict()

    def test_load_results_when_invalid_json_then_raises(self, tmp_path):
        # Arrange
        (tmp_path / 'results.json').write_text('{"metadata": ', encoding = 'utf-8')

        # Act / Assert
        with pytest.raises(DatasetError):
            load_results(tmp_path)

    def test_save_eval_yaml_when_aggregate_then_named_after_model(self, runner, items, tmp_path):
        # Arrange
        aggregate = runner.run(items, metadata = {'provider': 'ollama', 'model': 'mistral'})

        # Act
        path = save_eval_yaml(aggregate, tmp_path / 'evals')

        # Assert
        assert path.name.startswith('mistral-')
        assert path.suffix == '.yaml'
        assert YAML(typ = 'safe').load(path)['config']['model'] == 'mistral'

    def test_build_reference_dataset_when_untitled_record_then_skipped(self, parser, tmp_path):
        # Arrange
        records = [
            InstitutionalBooksRecord(barcode_src = '1', title_src = 'Walden', author_src = 'Thoreau, Henry David'),
            InstitutionalBooksRecord(barcode_src = '2'),
            InstitutionalBooksRecord(barcode_src = '', title_src = 'Emma')
        ]

        # Act
        dataset = build_reference_dataset(records, tmp_path, entered_on = date(2024, 1, 15))

        # Assert
        assert [item.id for item in dataset] == ['1']
        assert load_dataset(tmp_path).items == dataset.items
        assert dataset.items[0].reference_format == 'mnemonic'
        assert parser.parse(dataset.items[0].reference_marc).get_fields('245')[0].text() == 'Walden'
