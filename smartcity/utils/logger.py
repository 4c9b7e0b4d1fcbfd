"""
This module provides standardized logging across all components with consistent
formatting, proper log levels, and configurable output destinations.

Standard Format: YYYY-MM-DD HH:MM:SS - [COMPONENT] - LEVEL - Message
"""
import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Optional, Dict, Any
from datetime import datetime

import pandas as pd


class ColoredFormatter(logging.Formatter):
    """Custom formatter with color coding for console output."""
    COLORS = {
        'DEBUG': '\033[36m',
        'INFO': '\033[32m',
        'WARNING': '\033[33m',
        'ERROR': '\033[31m',
        'CRITICAL': '\033[35m',
    }
    RESET = '\033[0m'

    def format(self, record):
        # Work on a copy so file handlers sharing the record stay uncoloured
        record = logging.makeLogRecord(record.__dict__)
        component = f"[{getattr(record, 'component', record.name).upper()}]"
        record.component_formatted = component

        if record.levelname in self.COLORS:
            color = self.COLORS[record.levelname]
            record.levelname = f"{color}{record.levelname}{self.RESET}"
            record.component_formatted = f"{color}{component}{self.RESET}"

        return super().format(record)


class StandardizedLogger:
    """Standardized logger factory for consistent logging across the framework."""
    LOG_FORMAT = "%(asctime)s - %(component_formatted)s - %(levelname)s - %(message)s"
    CONSOLE_FORMAT = "%(asctime)s - %(component_formatted)s - %(levelname)s - %(message)s"
    DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

    _loggers: Dict[str, logging.Logger] = {}
    _configured = False
    _log_dir: Optional[Path] = None

    @classmethod
    def configure_logging(cls,
                          log_dir: Optional[Path] = None,
                          console_level: int = logging.INFO,
                          file_level: int = logging.DEBUG,
                          max_file_size: int = 10 * 1024 * 1024,
                          backup_count: int = 5) -> None:
        """Configure global logging settings.

        The console handler is always installed. ``framework.log`` is only
        written when ``log_dir`` is given; calling again with a directory
        after a console-only setup adds the file handler.
        """
        root_logger = logging.getLogger()

        if not cls._configured:
            root_logger.setLevel(logging.DEBUG)
            for handler in root_logger.handlers[:]:
                root_logger.removeHandler(handler)

            console_handler = logging.StreamHandler(sys.stdout)
            console_handler.setLevel(console_level)
            console_handler.setFormatter(ColoredFormatter(cls.CONSOLE_FORMAT, datefmt=cls.DATE_FORMAT))
            root_logger.addHandler(console_handler)
            cls._configured = True
        else:
            for handler in root_logger.handlers:
                if isinstance(handler, logging.StreamHandler) and not isinstance(handler, logging.FileHandler):
                    handler.setLevel(console_level)

        if log_dir is None or cls._log_dir is not None:
            return

        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_dir / "framework.log",
            maxBytes=max_file_size,
            backupCount=backup_count
        )
        file_handler.setLevel(file_level)
        file_handler.setFormatter(logging.Formatter(
            cls.LOG_FORMAT.replace('%(component_formatted)s', '[%(name)s]'),
            datefmt=cls.DATE_FORMAT
        ))
        root_logger.addHandler(file_handler)
        cls._log_dir = log_dir

    @classmethod
    def get_logger(cls,
                   component: str,
                   log_file: Optional[str] = None,
                   log_dir: Optional[Path] = None) -> logging.Logger:
        """Get or create a standardized logger for a component.

        A component-specific rotating file is attached the first time the
        component is requested with both ``log_file`` and ``log_dir``.
        """
        if not cls._configured:
            cls.configure_logging()

        logger = logging.getLogger(component)
        logger.setLevel(logging.DEBUG)

        if not (log_file and log_dir):
            return logger

        logger_key = f"{component}_{Path(log_dir) / log_file}"
        if logger_key in cls._loggers:
            return cls._loggers[logger_key]

        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)

        component_handler = logging.handlers.RotatingFileHandler(
            log_dir / log_file,
            maxBytes=10 * 1024 * 1024,
            backupCount=3
        )
        component_handler.setLevel(logging.DEBUG)
        component_handler.setFormatter(logging.Formatter(
            cls.LOG_FORMAT.replace('%(component_formatted)s', f'[{component.upper()}]'),
            datefmt=cls.DATE_FORMAT
        ))
        logger.addHandler(component_handler)

        cls._loggers[logger_key] = logger
        return logger


def get_main_logger(log_dir: Optional[Path] = None) -> logging.Logger:
    """Get logger for main application."""
    return StandardizedLogger.get_logger('main', 'main.log', log_dir)


def get_schedule_logger(log_dir: Optional[Path] = None) -> logging.Logger:
    """Get logger for schedule compilation."""
    return StandardizedLogger.get_logger('schedule', 'schedule.log', log_dir)


def get_attack_logger(log_dir: Optional[Path] = None) -> logging.Logger:
    """Get logger for attack modules."""
    return StandardizedLogger.get_logger('attack', 'attack.log', log_dir)


def get_benign_logger(log_dir: Optional[Path] = None) -> logging.Logger:
    """Get logger for benign traffic generation."""
    return StandardizedLogger.get_logger('benign', 'benign.log', log_dir)


def get_oracle_logger(log_dir: Optional[Path] = None) -> logging.Logger:
    """Get logger for ML firewall queries."""
    return StandardizedLogger.get_logger('oracle', 'oracle.log', log_dir)


def get_engine_logger(log_dir: Optional[Path] = None) -> logging.Logger:
    """Get logger for simulation engine operations."""
    return StandardizedLogger.get_logger('engine', 'engine.log', log_dir)


def get_processing_logger(log_dir: Optional[Path] = None) -> logging.Logger:
    """Get logger for data processing operations."""
    return StandardizedLogger.get_logger('processing', 'processing.log', log_dir)


class RunContext:
    """Context manager to add run ID to all log messages within a scope."""
    def __init__(self, run_id: str, logger: logging.Logger):
        self.run_id = run_id
        self.logger = logger
        self.original_methods = {}

    def __enter__(self):
        self.original_methods = {
            'debug': self.logger.debug,
            'info': self.logger.info,
            'warning': self.logger.warning,
            'error': self.logger.error,
            'critical': self.logger.critical
        }

        def create_wrapper(original_method):
            def wrapper(msg, *args, **kwargs):
                prefixed_msg = f"[Run ID: {self.run_id}] {msg}"
                return original_method(prefixed_msg, *args, **kwargs)
            return wrapper

        for level, method in self.original_methods.items():
            setattr(self.logger, level, create_wrapper(method))

        return self.logger

    def __exit__(self, exc_type, exc_val, exc_tb):
        # Drop the instance attributes so the class methods show through again
        for level in self.original_methods:
            self.logger.__dict__.pop(level, None)


def with_run_id(run_id: str, logger: logging.Logger) -> RunContext:
    """Create a context manager that adds run ID to log messages."""
    return RunContext(run_id, logger)


class ConsoleOutput:
    """Standardized console output utilities."""
    @staticmethod
    def print_header(title: str, width: int = 80) -> None:
        """Print a standardized header."""
        print(f" {title.center(width-2)} ")
        print("=" * width)

    @staticmethod
    def print_section(title: str, width: int = 60) -> None:
        """Print a section separator."""
        print(f" {title}")
        print(f"{'-' * width}")

    @staticmethod
    def print_status(component: str, status: str, details: str = "") -> None:
        """Print standardized status message."""
        timestamp = datetime.now().strftime('%Y-%m-%d %H:%M:%S')
        status_msg = f"[{timestamp}] [{component.upper()}] {status}"
        if details:
            status_msg += f" - {details}"
        print(status_msg)

    @staticmethod
    def print_summary_table(data: Dict[str, Any], title: str = "Summary") -> None:
        """Print a formatted summary table."""
        ConsoleOutput.print_section(title)
        max_key_len = max(len(str(k)) for k in data.keys()) if data else 0
        for key, value in data.items():
            print(f"{str(key).ljust(max_key_len)} : {value}")


def analyze_dataset_summary(csv_file: Path, logger: Optional[logging.Logger] = None) -> Dict[str, Any]:
    """Analyze a flow dataset and return summary statistics.

    Args:
        csv_file: Flow dataset written by the exporter
        logger: Optional logger for logging results

    Returns:
        Dictionary containing dataset statistics
    """
    summary: Dict[str, Any] = {}

    if not Path(csv_file).exists():
        return {'error': f"{csv_file} not found"}

    try:
        df = pd.read_csv(csv_file)
    except (OSError, ValueError) as e:
        if logger:
            logger.error(f"Error analyzing dataset: {e}")
        return {'error': str(e)}

    summary['total_flows'] = len(df)
    if 'TrafficType' in df.columns:
        summary['multi_class'] = {str(k): int(v) for k, v in df['TrafficType'].value_counts().items()}
    if 'Label' in df.columns:
        summary['binary_class'] = {
            ('attack' if int(k) == 1 else 'benign'): int(v) for k, v in df['Label'].value_counts().items()
        }
    if 'District' in df.columns:
        summary['districts'] = {str(k): int(v) for k, v in df['District'].value_counts().items()}
    return summary


def print_dataset_summary(csv_file: Path, logger: Optional[logging.Logger] = None) -> None:
    """Print dataset summary to console and optionally log it.

    Args:
        csv_file: Flow dataset written by the exporter
        logger: Optional logger for logging results
    """
    summary = analyze_dataset_summary(csv_file, logger)

    if 'error' in summary:
        print(f"Error generating dataset summary: {summary['error']}")
        if logger:
            logger.error(f"Dataset summary generation failed: {summary['error']}")
        return

    ConsoleOutput.print_header("Dataset Generation Summary")
    total = summary.get('total_flows', 0)

    if 'multi_class' in summary:
        ConsoleOutput.print_section("Traffic Type Distribution")
        for class_name, count in sorted(summary['multi_class'].items()):
            percentage = (count / total * 100) if total > 0 else 0
            print(f"{class_name.ljust(18)} : {count:,} flows ({percentage:.1f}%)")
        print(f"{'Total'.ljust(18)} : {total:,} flows")

    if 'binary_class' in summary:
        ConsoleOutput.print_section("Binary Classification")
        for label, count in summary['binary_class'].items():
            percentage = (count / total * 100) if total > 0 else 0
            print(f"{label.capitalize().ljust(18)} : {count:,} flows ({percentage:.1f}%)")

    if 'districts' in summary:
        ConsoleOutput.print_section("Flows by Source District")
        for district, count in sorted(summary['districts'].items()):
            print(f"{district.ljust(18)} : {count:,} flows")

    if logger:
        logger.info("Dataset generation summary displayed above")


def initialize_logging(log_dir: Optional[Path] = None,
                       console_level: int = logging.INFO) -> None:
    """Initialize the logging system with default configuration."""
    StandardizedLogger.configure_logging(
        log_dir=log_dir,
        console_level=console_level
    )
