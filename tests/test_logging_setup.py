from __future__ import annotations

import logging
import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[1]))

from logging_setup import configure_logging


def test_configure_logging_once_with_file(tmp_path):
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    log_file = tmp_path / "inventaire.log"
    try:
        root._inventory_configured = False
        configure_logging("debug", str(log_file))
        added = [h for h in root.handlers if h not in saved_handlers]
        assert len(added) == 2
        assert root.level == logging.DEBUG

        configure_logging("debug", str(log_file))
        assert len([h for h in root.handlers if h not in saved_handlers]) == 2

        logging.getLogger("csv_utils").info("import done")
        for handler in added:
            handler.flush()
        assert "import done" in log_file.read_text(encoding="utf-8")
    finally:
        for handler in [h for h in root.handlers if h not in saved_handlers]:
            root.removeHandler(handler)
            handler.close()
        root.setLevel(saved_level)
        root._inventory_configured = False
