import json
import logging

import pytest
from structlog.contextvars import bound_contextvars

from intentcompass.logging_config import QUIET_LOGGERS, setup_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def test_json_lines_carry_run_context(capsys, restore_root_logger):
    setup_logging("INFO")

    with bound_contextvars(run_id="abc123", mode="execute"):
        logging.getLogger("intentcompass.core.flow.dispatcher").info("Executing flow")

    line = json.loads(capsys.readouterr().out.strip().splitlines()[-1])
    assert line["event"] == "Executing flow"
    assert line["run_id"] == "abc123"
    assert line["mode"] == "execute"
    assert line["level"] == "info"
    assert line["logger"] == "intentcompass.core.flow.dispatcher"


def test_levels(restore_root_logger):
    setup_logging("nonsense")

    assert logging.getLogger().level == logging.INFO
    for name in QUIET_LOGGERS:
        assert logging.getLogger(name).level == logging.WARNING
