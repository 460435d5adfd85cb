# wisent/framework/logger.py
"""Package logger.

Exposes:
  LOGGER         — package-level logger, silent unless a handler is attached
  DISCARD_LOGGER — logger used by Wisent instances configured without one
  LogStream      — Register/Unregister stream handlers, e.g. per test
"""

import itertools
import logging

LOGGER = logging.getLogger("wisent")
LOGGER.addHandler(logging.NullHandler())

DISCARD_LOGGER = logging.getLogger("wisent.discard")
DISCARD_LOGGER.addHandler(logging.NullHandler())
DISCARD_LOGGER.propagate = False

FORMATTER = logging.Formatter("%(asctime)s %(name)s [%(thread)d] %(levelname)-5s %(message)s")


class LogStream:
    """Registers a stream so that it receives log messages from LOGGER."""

    __STREAMS: dict[int, tuple[logging.Logger, logging.Handler]] = {}
    __ID = itertools.count()

    @classmethod
    def Register(cls, stream, level=logging.DEBUG, logger=LOGGER) -> int:
        """Attach stream to logger. Returns an ID for Unregister."""
        handler = logging.StreamHandler(stream)
        handler.setFormatter(FORMATTER)
        handler.setLevel(level)
        logger.addHandler(handler)
        if logger.getEffectiveLevel() > level:
            logger.setLevel(level)
        _id = next(cls.__ID)
        cls.__STREAMS[_id] = (logger, handler)
        return _id

    @classmethod
    def Unregister(cls, _id: int) -> None:
        """Detach the stream registered under _id."""
        entry = cls.__STREAMS.pop(_id, None)
        if entry:
            logger, handler = entry
            logger.removeHandler(handler)
