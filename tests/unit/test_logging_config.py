"""Tests for the loguru sink setup."""

import sys
from collections.abc import Iterator

import pytest
from loguru import logger

from fabric_tree.config import resolve_page_size
from fabric_tree.logging_config import configure_logging


@pytest.fixture(autouse=True)
def _restore_log_sink() -> Iterator[None]:
    yield
    logger.remove()
    logger.add(sys.stderr)


def test_messages_carry_module_name(
    capsys: pytest.CaptureFixture[str], monkeypatch: pytest.MonkeyPatch
) -> None:
    configure_logging()
    monkeypatch.setenv("FABRIC_TREE_PAGE_SIZE", "lots")

    resolve_page_size()

    err = capsys.readouterr().err
    assert "fabric_tree.config Ignoring non-numeric FABRIC_TREE_PAGE_SIZE='lots'" in err


def test_debug_only_when_verbose(capsys: pytest.CaptureFixture[str]) -> None:
    configure_logging()
    logger.debug("hidden detail")
    assert "hidden detail" not in capsys.readouterr().err

    configure_logging(verbose=True)
    logger.debug("shown detail")
    assert "shown detail" in capsys.readouterr().err
