from __future__ import annotations

import csv
import itertools
import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[1]))

import config
from audit import AuditSession, export_audit_csv, reconcile


def _item(eid, location_id, poste=None, category="PC"):
    return {"id": eid, "poste": poste or eid.upper(), "category": category, "location_id": location_id}


EQUIPMENT = [
    _item("a", 1),
    _item("b", 1),
    _item("c", 2, category="Écran"),
    _item("d", None),
    _item("e", 2),
]


def _ids(items):
    return [i["id"] for i in items]


def test_partitions():
    result = reconcile(EQUIPMENT, 1, {"a", "c", "zzz"})
    assert _ids(result.found) == ["a"]
    assert _ids(result.missing) == ["b"]
    assert _ids(result.displaced) == ["c"]
    assert result.unknown == ["zzz"]


def test_unassigned_items_are_never_expected():
    result = reconcile(EQUIPMENT, 1, {"d"})
    assert _ids(result.displaced) == ["d"]
    assert _ids(result.missing) == ["a", "b"]

    result = reconcile(EQUIPMENT, None, set())
    assert result.found == result.missing == result.displaced == []


def test_partitions_are_disjoint_and_complete():
    all_ids = [i["id"] for i in EQUIPMENT]
    for location in (1, 2, 3):
        expected = {i["id"] for i in EQUIPMENT if i["location_id"] == location}
        for size in range(len(all_ids) + 1):
            for scanned in itertools.combinations(all_ids, size):
                scanned = set(scanned)
                result = reconcile(EQUIPMENT, location, scanned)
                found, missing, displaced = set(_ids(result.found)), set(_ids(result.missing)), set(_ids(result.displaced))
                assert not found & missing
                assert not found & displaced
                assert not missing & displaced
                assert found | missing == expected
                assert found | displaced == scanned


def test_reconcile_on_empty_room():
    result = reconcile(EQUIPMENT, 99, [])
    assert result == ([], [], [], [])


def test_session_records_each_id_once():
    session = AuditSession(1)
    assert session.record("http://epil.local/equip/a") == "a"
    assert session.record("http://epil.local/equip/a") is None
    assert session.record("a") is None
    assert session.record("") is None
    assert session.record("c") == "c"
    assert session.scanned_ids == ["a", "c"]
    assert len(session) == 2
    assert "a" in session

    result = session.reconcile(EQUIPMENT)
    assert _ids(result.found) == ["a"]
    assert _ids(result.displaced) == ["c"]


def test_session_reset():
    session = AuditSession(1)
    session.record("a")
    session.reset()
    assert len(session) == 0
    assert session.location_id == 1

    session.record("a")
    session.reset(2)
    assert session.location_id == 2
    assert session.scanned_ids == []
    assert session.record("a") == "a"


def test_audit_report():
    result = reconcile(EQUIPMENT, 1, {"a", "c", "d"})
    text = export_audit_csv(result, "Salle 1", {1: "Salle 1", 2: "Salle 2"})
    rows = list(csv.reader(text.splitlines()))
    assert rows[0] == config.AUDIT_COLUMNS
    assert rows[1:] == [
        ["Trouvé", "A", "PC", "Salle 1"],
        ["Manquant", "B", "PC", "Salle 1"],
        ["Déplacé", "C", "Écran", "Salle 2"],
        ["Déplacé", "D", "PC", "Non assigné"],
    ]


def test_empty_audit_report_has_header():
    text = export_audit_csv(reconcile([], 1, []), "Salle 1")
    assert list(csv.reader(text.splitlines())) == [config.AUDIT_COLUMNS]
