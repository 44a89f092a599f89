from pathlib import Path
from typing  import Union, Optional

class Utils:
    """
    Core utilities used across the project.
    """
    PACKAGE_DIR = Path(__file__).resolve().parents[2]

    @classmethod
    def find_root(
        cls,
        marker_file : Union[str, list[str]] = 'pyproject.toml',
        start_path  : Optional[Path] = None
    ) -> Path:
        """Find project root by searching for a marker file.

        Args:
            marker_file : File(s) that indicate project root
            start_path  : Path to start search from (defaults to this package)

        Returns:
            Path to project root

        Raises:
            FileNotFoundError: If marker file not found in any parent directory
        """
        markers = [marker_file] if isinstance(marker_file, str) else marker_file
        path    = Path(start_path or cls.PACKAGE_DIR).resolve()

        for parent in [path, *path.parents]:
            if any((parent / marker).exists() for marker in markers):
                return parent

        raise FileNotFoundError(f"Could not find any of {markers}")

    @classmethod
    def config_path(cls, file_name: str) -> Path:
        """
        Returns the path of a YAML file shipped in the package's config directory.
        """
        return cls.PACKAGE_DIR / 'config' / file_name

    @staticmethod
    def truncate(text: str, max_length: int) -> str:
        """
        Shortens text to max_length characters, marking the cut with an ellipsis.
        """
        if len(text) <= max_length:
            return text
        return text[:max_length - 3] + '...'
