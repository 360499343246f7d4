import os
import logging
import pytz
from datetime import datetime

DEFAULT_TIMEZONE = 'Asia/Manila'


class LocalTimeFormatter(logging.Formatter):
    def __init__(self, *args, timezone=DEFAULT_TIMEZONE, **kwargs):
        super().__init__(*args, **kwargs)
        self.timezone = pytz.timezone(timezone)

    def formatTime(self, record, datefmt=None):
        # Render the record timestamp in the deployment's local timezone
        record_time = datetime.fromtimestamp(record.created, self.timezone)
        return record_time.strftime(datefmt) if datefmt else record_time.isoformat()


def setup_logging(timezone=None):
    logger = logging.getLogger()
    if not logger.handlers:
        formatter = LocalTimeFormatter(
            fmt='%(asctime)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S',
            timezone=timezone or os.environ.get('LOG_TIMEZONE', DEFAULT_TIMEZONE),
        )

        handler = logging.StreamHandler()
        handler.setFormatter(formatter)

        logger.setLevel(logging.INFO)
        logger.addHandler(handler)
    elif timezone:
        # Modules log before the app is configured; adopt the configured zone
        for handler in logger.handlers:
            if isinstance(handler.formatter, LocalTimeFormatter):
                handler.formatter.timezone = pytz.timezone(timezone)

    return logger
