"""
Logging Configuration for the Factory Payroll System
Provides console and rotating file logging plus timing for payroll operations
"""

import logging
import logging.handlers
import os
from datetime import datetime
from typing import Optional


class PayrollLogFormatter(logging.Formatter):
    """Console formatter with color coded levels"""

    COLORS = {
        'DEBUG': '\033[36m',    # Cyan
        'INFO': '\033[32m',     # Green
        'WARNING': '\033[33m',  # Yellow
        'ERROR': '\033[31m',    # Red
        'CRITICAL': '\033[35m', # Magenta
    }
    RESET = '\033[0m'

    def format(self, record):
        levelname = record.levelname
        color = self.COLORS.get(levelname, '')
        record.levelname = f"{color}{levelname}{self.RESET}"
        try:
            return super().format(record)
        finally:
            # Other handlers share the record
            record.levelname = levelname


def setup_logging(
    log_level: str = "INFO",
    log_file: Optional[str] = None,
    enable_console: bool = True,
    enable_file_rotation: bool = True
):
    """Setup comprehensive logging configuration"""

    # Create logs directory if it doesn't exist
    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir and not os.path.exists(log_dir):
            os.makedirs(log_dir, exist_ok=True)

    numeric_level = getattr(logging, log_level.upper(), None)
    if not isinstance(numeric_level, int):
        raise ValueError(f'Invalid log level: {log_level}')

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    root_logger.handlers.clear()

    console_formatter = PayrollLogFormatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    file_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    if enable_console:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(numeric_level)
        console_handler.setFormatter(console_formatter)
        root_logger.addHandler(console_handler)

    if log_file:
        if enable_file_rotation:
            # Rotating file handler (10MB max, keep 5 backups)
            file_handler = logging.handlers.RotatingFileHandler(
                log_file,
                maxBytes=10*1024*1024,
                backupCount=5
            )
        else:
            file_handler = logging.FileHandler(log_file)

        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(file_formatter)
        root_logger.addHandler(file_handler)

    loggers = [
        'app.core.cache',
        'app.payrolls.service',
        'app.payrolls.synchronizer',
        'app.attendance.service',
    ]

    for logger_name in loggers:
        logging.getLogger(logger_name).setLevel(numeric_level)

    return root_logger


def log_payroll_operation(
    operation: str,
    subject: Optional[str] = None,
    duration: Optional[float] = None,
    success: bool = True,
    details: Optional[dict] = None,
    logger: Optional[logging.Logger] = None
):
    """Log a payroll operation outcome in a single pipe-separated line"""

    if logger is None:
        logger = logging.getLogger('app.payrolls.service')

    status_label = "OK" if success else "FAILED"
    operation_type = operation.upper().replace("_", " ")

    message_parts = [f"PAYROLL {status_label} - {operation_type}:"]

    if subject:
        message_parts.append(f"Subject: {subject}")

    if duration is not None:
        message_parts.append(f"Duration: {duration:.3f}s")

    if details:
        for key, value in details.items():
            message_parts.append(f"{key}: {value}")

    message = " | ".join(message_parts)

    if success:
        logger.info(message)
    else:
        logger.error(message)


class PayrollOperationLogger:
    """Context manager timing a payroll operation and logging its outcome"""

    def __init__(
        self,
        operation: str,
        subject: Optional[str] = None,
        logger: Optional[logging.Logger] = None
    ):
        self.operation = operation
        self.subject = subject
        self.logger = logger or logging.getLogger('app.payrolls.service')
        self.start_time = None
        self.success = False
        self.details = {}

    def __enter__(self):
        self.start_time = datetime.now().timestamp()
        self.logger.debug(f"PAYROLL - {self.operation.upper()}: Starting for {self.subject}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        duration = datetime.now().timestamp() - self.start_time if self.start_time else 0

        if exc_type is None:
            self.success = True
        else:
            self.details['error'] = str(exc_val)

        log_payroll_operation(
            self.operation,
            self.subject,
            duration,
            self.success,
            self.details,
            self.logger
        )
        return False

    def add_detail(self, key: str, value):
        """Add additional details to the log"""
        self.details[key] = value
