"""
Configuration management and environment validation
"""

import os
import logging

# Defaults, each one can be overridden from the environment
SHEETS_DIR = './sheets'
BIRTHDAYS_SOURCE = 'Birthdays'
ANNIVERSARIES_SOURCE = 'Anniversaries'
SORT_ON_READ = True
FAIL_OPEN_LISTING = True
LOG_FILE = '/var/log/datesync/sync.log'

REQUIRED_VARS = [
    'CALDAV_SERVER_URL',
    'CALDAV_USERNAME',
    'CALDAV_PASSWORD'
]


def _env_flag(name: str, default: bool) -> bool:
    return os.getenv(name, 'true' if default else 'false').lower() == 'true'


def setup_logging():
    """Setup logging configuration from environment variables"""
    log_level = os.getenv('LOG_LEVEL', 'INFO').upper()
    log_to_file = _env_flag('LOG_TO_FILE', False)
    debug_mode = _env_flag('DEBUG', False)

    if debug_mode:
        log_level = 'DEBUG'

    detailed_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    simple_formatter = logging.Formatter(
        '%(asctime)s - %(levelname)s - %(message)s'
    )

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(simple_formatter)
    handlers = [console_handler]

    if log_to_file:
        try:
            os.makedirs(os.path.dirname(LOG_FILE), exist_ok=True)
            file_handler = logging.FileHandler(LOG_FILE)
            file_handler.setFormatter(detailed_formatter)
            handlers.append(file_handler)
        except OSError as e:
            print(f"Warning: Could not create log file: {e}")

    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        handlers=handlers,
        force=True
    )

    # The CalDAV stack is chatty at INFO/DEBUG
    if not debug_mode:
        for name in ('requests', 'urllib3', 'caldav'):
            logging.getLogger(name).setLevel(logging.WARNING)


def validate_environment():
    """Validate required environment variables"""
    logger = logging.getLogger(__name__)

    missing_vars = [var for var in REQUIRED_VARS if not os.getenv(var)]

    if missing_vars:
        logger.error(f"Missing required environment variables: {', '.join(missing_vars)}")
        return False

    logger.info("Environment validation passed")
    return True


def get_caldav_config():
    """Get CalDAV connection settings from environment"""
    return {
        'server_url': os.getenv('CALDAV_SERVER_URL'),
        'username': os.getenv('CALDAV_USERNAME'),
        'password': os.getenv('CALDAV_PASSWORD'),
        'fail_open': _env_flag('FAIL_OPEN_LISTING', FAIL_OPEN_LISTING)
    }


def get_source_config():
    """Get sheet locations and names from environment"""
    return {
        'sheets_dir': os.getenv('SHEETS_DIR', SHEETS_DIR),
        'birthdays_source': os.getenv('BIRTHDAYS_SOURCE', BIRTHDAYS_SOURCE),
        'anniversaries_source': os.getenv('ANNIVERSARIES_SOURCE', ANNIVERSARIES_SOURCE),
        'sort_on_read': _env_flag('SORT_ON_READ', SORT_ON_READ)
    }


def get_scheduler_config():
    """Get scheduler configuration from environment"""
    return {
        'sync_schedule': os.getenv('SYNC_SCHEDULE', '0 6 * * *'),
        'sync_interval_hours': int(os.getenv('SYNC_INTERVAL_HOURS', '0')),
        'startup_delay': int(os.getenv('STARTUP_DELAY', '30'))
    }
