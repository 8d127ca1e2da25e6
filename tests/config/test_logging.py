from __future__ import annotations

import logging

from marketledger.config.logging import LOG_FORMAT, configure_logging


def test_configure_logging_replaces_root_handlers() -> None:
    root = logging.getLogger()
    saved_handlers = list(root.handlers)
    saved_level = root.level
    try:
        configure_logging(level=logging.DEBUG, force=True)

        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        formatter = root.handlers[0].formatter
        assert formatter is not None
        assert formatter._fmt == LOG_FORMAT  # noqa: SLF001
    finally:
        for handler in list(root.handlers):
            root.removeHandler(handler)
        for handler in saved_handlers:
            root.addHandler(handler)
        root.setLevel(saved_level)
