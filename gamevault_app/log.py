import os
import sys
import json
import logging
from logging.handlers import RotatingFileHandler

# Configure logging for both package trees
logger = logging.getLogger("gamevault_app")
logger.setLevel(logging.INFO)
sources_logger = logging.getLogger("sources")
sources_logger.setLevel(logging.INFO)

# Determine log file path
BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
LOG_DIR = os.environ.get('GAMEVAULT_LOG_DIR', os.path.join(BASE_DIR, 'instance'))
os.makedirs(LOG_DIR, exist_ok=True)
LOG_FILE = os.path.join(LOG_DIR, 'gamevault.log')

# File Handler
file_handler = RotatingFileHandler(LOG_FILE, maxBytes=10*1024*1024, backupCount=5)
file_handler.setFormatter(logging.Formatter('%(asctime)s - %(levelname)s - %(message)s'))

# Stream Handler (stdout)
stream_handler = logging.StreamHandler(sys.stdout)
stream_handler.setFormatter(logging.Formatter('%(message)s'))  # Keep stdout clean

for _tree in (logger, sources_logger):
    if not any(getattr(h, "baseFilename", None) == LOG_FILE for h in _tree.handlers):
        _tree.addHandler(file_handler)
        _tree.addHandler(stream_handler)

# Debug logging (local-only file)
DEBUG_LOGGING = os.environ.get('DEBUG_LOGGING', 'false').lower() in ('1', 'true', 'yes', 'on')
DEBUG_LOG_DIR = os.path.join(BASE_DIR, 'debugging')
DEBUG_LOG_FILE = os.path.join(DEBUG_LOG_DIR, 'debug.log')

debug_logger = logging.getLogger("gamevault_app.debug")
debug_logger.setLevel(logging.INFO)
debug_logger.propagate = False
if DEBUG_LOGGING:
    os.makedirs(DEBUG_LOG_DIR, exist_ok=True)
    if not any(getattr(h, "baseFilename", None) == DEBUG_LOG_FILE for h in debug_logger.handlers):
        debug_handler = RotatingFileHandler(DEBUG_LOG_FILE, maxBytes=10 * 1024 * 1024, backupCount=10)
        debug_handler.setFormatter(logging.Formatter('%(message)s'))
        debug_logger.addHandler(debug_handler)
else:
    debug_logger.disabled = True


def log(msg: str) -> None:
    """Log a lifecycle message to console and file."""
    logger.info(msg)


def debug_log_event(event: dict) -> None:
    """Write structured debug events to a local file."""
    if debug_logger.disabled:
        return
    try:
        debug_logger.info(json.dumps(event, ensure_ascii=True, separators=(',', ':'), default=str))
    except (TypeError, ValueError) as exc:
        logger.info(f"⚠️ Debug log failure: {exc}")
