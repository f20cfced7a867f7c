"""Process wiring tests."""

from __future__ import annotations

import logging

from pinot_operator import main
from pinot_operator.kube.backend import KubernetesWorkloadBackend
from pinot_operator.kube.memory import InMemoryWorkloadBackend
from pinot_operator.shared import logging as operator_logging
from pinot_operator.shared.logging import OPERATOR_LOGGER


def test_main_logger_reaches_operator_file_log(tmp_path, monkeypatch) -> None:
    monkeypatch.setattr(operator_logging, "LOG_DIR", tmp_path)
    operator_logger = logging.getLogger(OPERATOR_LOGGER)
    existing = list(operator_logger.handlers)

    main.setup_logging("INFO", log_file="operator.log")
    try:
        main.logger.warning("engine wiring ready")
    finally:
        for handler in list(operator_logger.handlers):
            if handler not in existing:
                handler.flush()
                operator_logger.removeHandler(handler)
                handler.close()

    assert "pinot_operator.main | engine wiring ready" in (tmp_path / "operator.log").read_text()


def test_dry_run_keeps_workloads_in_memory() -> None:
    assert isinstance(main.init_backend(apis=None, dry_run=True), InMemoryWorkloadBackend)
    assert isinstance(main.init_backend(apis=None, dry_run=False), KubernetesWorkloadBackend)
