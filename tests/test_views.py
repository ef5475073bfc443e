from __future__ import annotations

import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

# camera decoding needs the zbar shared library
views = pytest.importorskip("views")


def test_scan_status_for_read_only_users():
    assert views.scan_status(False, writable=False) == "👁️ Non enregistré (lecture seule)"


def test_scan_status_for_writers():
    assert views.scan_status(True, writable=True) == "✅ Vérifié"
    assert views.scan_status(False, writable=True) == "☑️ Déjà scanné"
