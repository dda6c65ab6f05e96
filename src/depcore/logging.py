"""
Provides two predefined logging configurations default_config and
no_datetime_config, with a log level determined by an env vbl
LOG_LEVEL (default INFO). The level of the query engine's own loggers
(treequery.*) can be set separately with TREEQUERY_LOG_LEVEL, e.g. to
see per-hop DEBUG output without the DEBUG output of spacy & co.
Log output goes to stderr, so it does not mix with CSV on stdout.

Does not set the logging configuration, as that should be set by higher
level code such as scripts, not by a lower level module such as this.
Both configurations set disable_existing_loggers=False, since the
library modules create their loggers at import time, before any script
gets to configure logging.

The normal way to initialize logging using this is as follows:
    import logging.config
    from depcore.logging import no_datetime_config
    logging.config.dictConfig(no_datetime_config)
"""

import os


log_level = os.environ.get("LOG_LEVEL", "INFO").upper()
engine_log_level = os.environ.get("TREEQUERY_LOG_LEVEL", log_level).upper()

default_format = '%(asctime)s %(levelname)-8s %(name)s %(funcName)s L%(lineno)d %(message)s'
no_datetime_format = '%(levelname)-8s %(name)s %(funcName)s L%(lineno)d %(message)s'


def make_config(fmt: str, level: str = log_level, engine_level: str = engine_log_level) -> dict:
    """A dictConfig dictionary logging to stderr with the given format."""
    return dict(
        version=1,
        disable_existing_loggers=False,
        formatters={
            'f': {'format': fmt}
        },
        handlers={
            'h': {'class': 'logging.StreamHandler',
                  'formatter': 'f',
                  'stream': 'ext://sys.stderr',
                  }
        },
        loggers={
            'treequery': {'level': engine_level},
        },
        root={
            'handlers': ['h'],
            'level': level,
        },
    )


default_config = make_config(default_format)

# Without timestamps, log output of different runs can be diffed.
no_datetime_config = make_config(no_datetime_format)
