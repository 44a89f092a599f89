import logging

from marc_evaluator.core.utils import Utils
from pathlib                   import Path

def resolve_logs_dir() -> Path:
    """
    Locates the logs directory beside the package in a source checkout,
    or under the working directory for an installed copy.
    """
    try:
        return Utils.find_root('pyproject.toml') / 'marc_evaluator' / 'logs'
    except FileNotFoundError:
        return Path.cwd() / 'logs'

class ModuleLogger:
    """
    Configures and manages logging for MARC Evaluator modules.
    """
    LOGS_DIR = resolve_logs_dir()

    def __init__(self, module_name: str):
        """
        Initialize logger configuration for a specific module.

        Args:
            module_name : Name of the module requesting the logger
        """
        self.logger   = logging.getLogger(f'marc_evaluator.{module_name}')
        self.log_file = self.LOGS_DIR / f'{module_name}.log'

        self.configure_logger()

    def configure_logger(self):
        """
        Sets up logger with file handler if not already configured.
        """
        if not self.logger.handlers:

            self.logger.setLevel(logging.INFO)
            self.LOGS_DIR.mkdir(parents = True, exist_ok = True)

            handler = logging.FileHandler(self.log_file, mode = 'a', encoding = 'utf-8')
            handler.setFormatter(
                logging.Formatter('%(asctime)s - %(levelname)s - %(message)s')
            )

            self.logger.addHandler(handler)
            self.logger.propagate = False

    def __call__(self) -> logging.Logger:
        """
        Returns the configured logger instance.
        """
        return self.logger
