from __future__ import annotations

import logging
from typing import Iterator

import pytest

from clawgate import Orchestrator


@pytest.fixture
def orchestrator() -> Orchestrator:
    """Provide an orchestrator with the default rule tables and no deadline."""
    return Orchestrator(timeout_seconds=None)


@pytest.fixture(autouse=True)
def _reset_clawgate_logger() -> Iterator[None]:
    """CLI runs install handlers on captured streams; drop them between tests."""
    yield
    logger = logging.getLogger("clawgate")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
