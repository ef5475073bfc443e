from __future__ import annotations

import csv
import re
import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[1]))

import config
from csv_utils import export_equipment_csv, export_filename, parse_csv, to_csv_bytes

HEADERS = [
    "ID", "Poste", "Catégorie", "Marque", "Modèle", "N° Série", "État", "Date Achat",
    "Fin Garantie", "Processeur", "RAM", "Capacité DD", "Alimentation", "OS", "Adresse MAC", "Notes",
]


def _rows(text):
    return list(csv.reader(text.splitlines()))


def test_header_is_fixed_even_without_records():
    text = export_equipment_csv([])
    rows = _rows(text)
    assert rows == [HEADERS]
    assert [label for _, label in config.EXPORT_COLUMNS] == HEADERS


def test_absent_optional_fields_export_as_empty_cells():
    item = {"id": "abc", "poste": "PC01", "category": "PC", "etat": "OK"}
    text = export_equipment_csv([item])
    header, row = _rows(text)
    assert len(row) == 16
    assert row[:3] == ["abc", "PC01", "PC"]
    assert row[6] == "OK"
    assert all(cell == "" for i, cell in enumerate(row) if i not in (0, 1, 2, 6))


def test_every_cell_is_quoted():
    item = {"id": "abc", "poste": "PC01", "category": "PC", "etat": "OK"}
    line = export_equipment_csv([item]).splitlines()[1]
    assert line.startswith('"abc","PC01","PC","","","","OK"')
    assert line.endswith('""')


def test_power_supply_is_localized():
    items = [
        {"id": "1", "poste": "A", "category": "PC", "etat": "OK", "alimentation": True},
        {"id": "2", "poste": "B", "category": "PC", "etat": "OK", "alimentation": False},
    ]
    rows = _rows(export_equipment_csv(items))
    assert [r[12] for r in rows[1:]] == ["Oui", "Non"]


def test_commas_and_quotes_in_values():
    item = {"id": "1", "poste": "A", "category": "Écran", "etat": "OK",
            "marque": "Dell, Inc.", "notes": 'dalle "27 pouces"'}
    text = export_equipment_csv([item])
    assert '"dalle ""27 pouces"""' in text
    row = _rows(text)[1]
    assert row[3] == "Dell, Inc."
    assert row[15] == 'dalle "27 pouces"'


def test_export_can_be_imported_back():
    item = {
        "id": "f00", "poste": "PC42", "category": "PC", "etat": "Panne", "marque": "HP",
        "modele": "EliteDesk 800", "numero_serie": "SN1", "date_achat": "2024-03-01",
        "fin_garantie": "2027-03-01", "processeur": "i5-8500", "ram": "16 Go",
        "capacite_dd": "512 Go", "alimentation": False, "os": "Windows 11",
        "adresse_mac": "AA:BB:CC:DD:EE:FF", "notes": "Salle, fond",
    }
    result = parse_csv(export_equipment_csv([item]))
    assert result.skipped == 0
    record = result.records[0]
    for field, value in item.items():
        if field != "id":
            assert record[field] == value


def test_export_filename_and_bytes():
    assert re.fullmatch(r"inventaire_epil_\d{4}-\d{2}-\d{2}\.csv", export_filename())
    assert re.fullmatch(r"audit_B12_\d{4}-\d{2}-\d{2}\.csv", export_filename("audit_B12"))
    assert to_csv_bytes("Poste").startswith(b"\xef\xbb\xbf")
