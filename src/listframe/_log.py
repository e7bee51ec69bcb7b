import logging
import time
from typing import IO, Iterable

from colorlog import ColoredFormatter

from listframe._utils import get_loglevel


log_format: str = (
    '%(asctime)s %(log_color)s%(levelname)s%(reset)s %(name)s: %(message)s'
)

log_colors: dict[str, str] = {
    'DEBUG': 'cyan',
    'INFO': 'green',
    'WARNING': 'yellow',
    'ERROR': 'red',
    'CRITICAL': 'bold_red',
}


class UTCColoredFormatter(ColoredFormatter):
    '''
    A ColoredFormatter that uses UTC for timestamps
    and formats them in ISO8601 with a trailing 'Z'.

    '''

    # switch time converter to UTC
    converter = time.gmtime

    def formatTime(self, record, datefmt=None):
        # a custom datefmt defers to the base implementation
        if datefmt:
            return super().formatTime(record, datefmt)

        ct = self.converter(record.created)
        t = time.strftime('%Y-%m-%dT%H:%M:%S', ct)
        return f'{t}Z'


def _level(loglevel: str | int) -> int:
    if isinstance(loglevel, int):
        return loglevel

    level = logging.getLevelName(loglevel.upper())
    if not isinstance(level, int):
        raise ValueError(f'Unknown log level {loglevel!r}')

    return level


def setup_logging(
    loglevel: str | int | None = None,
    silence: Iterable[str] = (),
    stream: IO[str] | None = None,
) -> logging.Logger:
    '''
    Install a single colored stream handler on the root logger.

    When `loglevel` is not passed, `LISTFRAME_LOGLEVEL` (default: info) is
    used. `stream` defaults to stderr. Calling it again replaces the
    previous handler.

    '''
    level = _level(loglevel if loglevel is not None else get_loglevel())

    # silence chatty dependencies
    for noisy in silence:
        logging.getLogger(noisy).setLevel(logging.WARNING)

    formatter = UTCColoredFormatter(log_format, log_colors=log_colors)

    root = logging.getLogger()

    # avoid duplicates if called twice
    if root.handlers:
        root.handlers.clear()

    handler = logging.StreamHandler(stream)
    handler.setFormatter(formatter)
    root.addHandler(handler)
    root.setLevel(level)

    return root
