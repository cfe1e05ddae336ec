"""
Logging setup for applications embedding the timelock engine.

Engine modules only create loggers; nothing here runs at import time.
Conditions the engine reports as warnings on its results (undecodable
batches, malformed role events, inconsistent operations) are also logged
through log_anomaly, which attaches the warning kind and key=value fields to
the record so handlers can filter on them.

Environment switches (read when setup_logging runs, optionally from a .env
file the application asks for):
    TIMELOCK_ENGINE_DEBUG=1          verbose decoder log file
    TIMELOCK_ENGINE_DEBUG_LOG=path   location of that file (decoder_debug.log)
"""
import logging
import os
import sys
from enum import Enum
from pathlib import Path
from typing import Optional, Union

from dotenv import load_dotenv

ENGINE_LOGGER = 'timelock_engine'
DECODER_LOGGER = 'timelock_engine.services.decoders'
CONSOLE_HANDLER_NAME = 'timelock_engine_console'
DEBUG_HANDLER_NAME = 'timelock_decoder_debug'
DEFAULT_DEBUG_LOG = 'decoder_debug.log'

NOISY_LOGGERS = ('web3', 'web3.providers', 'web3.RequestManager', 'urllib3', 'asyncio')

_LEVEL_TAGS = {
    logging.DEBUG: ('D', '90'),
    logging.INFO: ('I', '32'),
    logging.WARNING: ('W', '33'),
    logging.ERROR: ('E', '31'),
    logging.CRITICAL: ('!', '31;1'),
}


def structured_suffix(record: logging.LogRecord) -> str:
    """' [KIND] key=value ...' for records logged through log_anomaly, else ''"""
    kind = getattr(record, 'anomaly', None)
    if not kind:
        return ""
    fields = getattr(record, 'anomaly_fields', None) or {}
    pairs = " ".join(f"{key}={value}" for key, value in sorted(fields.items()))
    return f" [{kind}]" + (f" {pairs}" if pairs else "")


class ConsoleFormatter(logging.Formatter):
    """One line per record with a level tag; anomaly fields appended."""

    def __init__(self, color: bool = True):
        super().__init__()
        self.color = color

    def format(self, record):
        tag, code = _LEVEL_TAGS.get(record.levelno, _LEVEL_TAGS[logging.INFO])
        tag = f"\033[{code}m[{tag}]\033[0m" if self.color else f"[{tag}]"
        origin = "" if record.levelno in (logging.INFO, logging.WARNING) else f"{record.name}: "
        line = f"{tag} {origin}{record.getMessage()}{structured_suffix(record)}"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


class FileFormatter(logging.Formatter):
    """Timestamped lines for the decoder debug file."""

    def __init__(self):
        super().__init__(fmt='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
                         datefmt='%Y-%m-%d %H:%M:%S')

    def formatMessage(self, record):
        return super().formatMessage(record) + structured_suffix(record)


def log_anomaly(logger: logging.Logger, kind: Union[Enum, str], message: str, **fields) -> None:
    """
    Log a warning the engine also reports on its result.

    Usage:
        log_anomaly(logger, DecoderWarningKind.MALFORMED_BATCH_ARITY, message,
                    target=node.target, targets=3, values=2)
    """
    kind_name = kind.value if isinstance(kind, Enum) else str(kind)
    logger.warning(message, extra={'anomaly': kind_name, 'anomaly_fields': fields})


def debug_enabled() -> bool:
    return os.getenv('TIMELOCK_ENGINE_DEBUG', '').strip().lower() in ('1', 'true', 'yes')


def debug_log_path() -> Path:
    return Path(os.getenv('TIMELOCK_ENGINE_DEBUG_LOG', DEFAULT_DEBUG_LOG))


def setup_logging(level=logging.INFO, env_file: Optional[Union[str, Path]] = None,
                  load_env: bool = False, color: bool = True) -> logging.Logger:
    """
    Attach a console handler to the engine logger.

    Args:
        level: Level for the engine loggers
        env_file: .env file to load before reading the switches
        load_env: Load the nearest .env file (python-dotenv search) when no
                  env_file is given
        color: ANSI colored level tags

    Returns:
        The 'timelock_engine' logger. The root logger is left alone, so the
        host application's own handlers keep working.
    """
    if env_file is not None:
        load_dotenv(env_file)
    elif load_env:
        load_dotenv()

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    engine_logger = logging.getLogger(ENGINE_LOGGER)
    engine_logger.setLevel(level)
    engine_logger.propagate = False
    for handler in [h for h in engine_logger.handlers if h.name == CONSOLE_HANDLER_NAME]:
        engine_logger.removeHandler(handler)

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(ConsoleFormatter(color=color))
    console.name = CONSOLE_HANDLER_NAME
    engine_logger.addHandler(console)

    if debug_enabled():
        path = setup_decoder_debug_logging()
        engine_logger.info(f"Decoder debug log enabled: {path}")

    return engine_logger


def setup_decoder_debug_logging(path: Optional[Union[str, Path]] = None) -> Path:
    """
    Send DEBUG records of every decoder module to a file.
    A second call keeps the existing file handler.
    """
    decoder_logger = logging.getLogger(DECODER_LOGGER)
    decoder_logger.setLevel(logging.DEBUG)

    for handler in decoder_logger.handlers:
        if handler.name == DEBUG_HANDLER_NAME:
            return Path(handler.baseFilename)

    path = Path(path) if path is not None else debug_log_path()
    file_handler = logging.FileHandler(path, mode='w', encoding='utf-8')
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(FileFormatter())
    file_handler.name = DEBUG_HANDLER_NAME
    decoder_logger.addHandler(file_handler)
    return path


def get_logger(name: str) -> logging.Logger:
    """Logger under the engine namespace, e.g. get_logger('roles')"""
    return logging.getLogger(f'{ENGINE_LOGGER}.{name}')
