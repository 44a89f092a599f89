import duckdb
import json

from marc_evaluator.core.dataset_loader.models import DatasetError, DatasetItem, EvaluationDataset, InstitutionalBooksRecord
from marc_evaluator.core.module_logger         import ModuleLogger
from pathlib                                   import Path

logger = ModuleLogger('loader')()

DATASET_FILE = 'dataset.json'

# -------------------- Evaluation Dataset Files --------------------

def load_dataset(dataset_dir: Path | str) -> EvaluationDataset:
    """
    Loads dataset.json from a dataset directory.

    Args:
        dataset_dir : Directory holding dataset.json

    Returns:
        EvaluationDataset: The decoded dataset

    Raises:
        OSError      : If the file cannot be read
        DatasetError : If the file is not a valid dataset document
    """
    dataset_path = Path(dataset_dir) / DATASET_FILE

    with dataset_path.open('r', encoding = 'utf-8') as file:
        try:
            data = json.load(file)
        except json.JSONDecodeError as e:
            raise DatasetError(f"Failed to decode {dataset_path}: {e}") from e

    dataset = EvaluationDataset.from_dict(data)
    logger.info(f"Loaded {len(dataset)} items from {dataset_path}")
    return dataset

def save_dataset(dataset: EvaluationDataset, output_dir: Path | str) -> Path:
    """
    Writes a dataset to output_dir/dataset.json, creating the directory when needed.
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents = True, exist_ok = True)

    dataset_path = output_dir / DATASET_FILE
    with dataset_path.open('w', encoding = 'utf-8') as file:
        json.dump(dataset.to_dict(), file, indent = 2, ensure_ascii = False)

    logger.info(f"Saved {len(dataset)} items to {dataset_path}")
    return dataset_path

def append_dataset_item(item: DatasetItem, output_dir: Path | str) -> Path:
    """
    Appends one item to output_dir/dataset.json, creating the dataset if it does not exist.
    """
    dataset_path = Path(output_dir) / DATASET_FILE
    dataset      = load_dataset(output_dir) if dataset_path.exists() else EvaluationDataset()

    dataset.items.append(item)
    return save_dataset(dataset, output_dir)

# -------------------- Institutional Books Loader --------------------

class InstitutionalBooksLoader:
    """
    Reads Institutional Books metadata records from JSON Lines or Parquet files through DuckDB.
    """
    READERS = {
        '.jsonl'   : 'read_json_auto',
        '.json'    : 'read_json_auto',
        '.parquet' : 'read_parquet'
    }

    def __init__(self, dataset_path: Path | str):
        """
        Initializes the InstitutionalBooksLoader instance.

        Args:
            dataset_path : Path to a .jsonl, .json or .parquet export of the dataset
        """
        self.dataset_path = Path(dataset_path)

    def load(self, limit: int | None = None) -> list[InstitutionalBooksRecord]:
        """
        Loads records from the dataset file.

        Args:
            limit : Optional maximum number of records to read

        Returns:
            list[InstitutionalBooksRecord]: Records in file order

        Raises:
            FileNotFoundError : If the dataset file does not exist
            DatasetError      : If the extension is unsupported or the file cannot be decoded
        """
        reader = self.READERS.get(self.dataset_path.suffix.lower())
        if reader is None:
            raise DatasetError(
                f"Unsupported file format: {self.dataset_path.suffix or '(none)'} "
                f"(supported: {', '.join(sorted(self.READERS))})"
            )

        if not self.dataset_path.is_file():
            raise FileNotFoundError(f"Dataset file not found: {self.dataset_path}")

        source = str(self.dataset_path).replace("'", "''")
        query  = f"SELECT * FROM {reader}('{source}')"
        if limit is not None:
            query += f" LIMIT {int(limit)}"

        conn = duckdb.connect()
        try:
            cursor  = conn.execute(query)
            columns = [column[0] for column in cursor.description]
            rows    = cursor.fetchall()
        except duckdb.Error as e:
            raise DatasetError(f"Failed to read {self.dataset_path}: {e}") from e
        finally:
            conn.close()

        records = [InstitutionalBooksRecord.from_dict(dict(zip(columns, row))) for row in rows]
        logger.info(f"Loaded {len(records)} Institutional Books records from {self.dataset_path}")

        if records:
            first = records[0]
            logger.debug(f"First record: barcode={first.barcode_src}, title={first.title_src}")

        return records
