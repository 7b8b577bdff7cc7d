import logging
import sys
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional


class JsonFormatter(logging.Formatter):
    """JSON formatter for structured logging."""
    def format(self, record):
        log_obj = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
            "module": record.module,
            "line": record.lineno,
        }
        if record.exc_info:
            log_obj["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_obj)


def configure_logging(level: str = "INFO", log_dir: Optional[str] = "logs") -> logging.Logger:
    """
    Configure the root logger once per process.
    Writes plain text logs to stdout and structured JSON logs to file.
    """
    root = logging.getLogger()
    root.setLevel(level.upper())

    # Avoid adding duplicate handlers if called multiple times
    if any(getattr(h, "_clipshow", False) for h in root.handlers):
        return root

    # Console Handler (Human readable)
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%H:%M:%S'
    ))
    console_handler._clipshow = True
    root.addHandler(console_handler)

    # File Handler (Structured JSON)
    if log_dir:
        path = Path(log_dir)
        path.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path / 'clipshow.json.log')
        file_handler.setFormatter(JsonFormatter())
        file_handler._clipshow = True
        root.addHandler(file_handler)

    return root
