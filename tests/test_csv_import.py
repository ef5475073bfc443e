from __future__ import annotations

import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[1]))

import csv_utils
from csv_utils import (
    detect_columns,
    detect_delimiter,
    detect_layout,
    match_header,
    normalize_date,
    normalize_row,
    parse_csv,
    read_uploaded_csv,
    split_line,
)


SAMPLE = (
    "Poste,Catégorie,Marque,Modèle,État,Date Achat\n"
    "PC01,PC,Dell,OptiPlex,OK,14/11/2025\n"
    ",PC,HP,EliteDesk,OK,2025-01-01\n"
    "PC03,Écran,Dell,P2419,Panne,\n"
)


def test_semicolon_wins_only_when_strictly_more():
    assert detect_delimiter("Poste;Marque;Modèle") == ";"
    assert detect_delimiter("Poste,Marque,Modèle") == ","
    assert detect_delimiter("Poste,Marque;Modèle") == ","
    assert detect_delimiter("Poste") == ","


def test_delimiters_inside_quoted_header_are_not_counted():
    assert detect_delimiter('"Marque, modèle, version";Poste') == ";"
    assert detect_delimiter('"a;b;c",Poste,Notes') == ","


def test_professional_headers():
    assert match_header("Poste") == "poste"
    assert match_header(" MARQUE ") == "marque"
    assert match_header("Modèle") == "modele"
    assert match_header("N° Série") == "numero_serie"
    assert match_header("Date Achat") == "date_achat"
    assert match_header("Fin Garantie") == "fin_garantie"
    assert match_header("Adresse MAC") == "adresse_mac"
    assert match_header('"État"') == "etat"


def test_form_headers():
    assert match_header("Numéro attribué au poste") == "poste"
    assert match_header("Quelle est la marque et le modèle") == "marque_modele"
    assert match_header("Dans quel état est le poste ?") == "etat"
    assert match_header("Le poste dispose-t-il d'une alimentation ?") == "alimentation"
    assert match_header("Quel est le système d'exploitation installé") == "os"
    assert match_header("Quantité de RAM du poste") == "ram"
    assert match_header("Salle du poste") == "emplacement"


def test_unrecognized_headers_are_ignored():
    assert match_header("Couleur") is None
    assert match_header("Programmes installés") is None
    assert match_header("") is None
    assert detect_columns(["Poste", "Couleur", "Marque", "Marque"]) == {"poste": 0, "marque": 2}


def test_layout_from_header_line():
    layout = detect_layout("Numéro attribué au poste;Quelle est la marque et le modèle;Alimentation")
    assert layout.delimiter == ";"
    assert layout.columns == {"poste": 0, "marque_modele": 1, "alimentation": 2}


def test_dates():
    assert normalize_date("14/11/2025") == "2025-11-14"
    assert normalize_date("2025-11-14") == "2025-11-14"
    assert normalize_date(normalize_date("14/11/2025")) == "2025-11-14"
    assert normalize_date("1-2-2024") == "2024-02-01"
    assert normalize_date(" 5/3/2023 ") == "2023-03-05"
    assert normalize_date("not-a-date") is None
    assert normalize_date("31/02/2024") is None
    assert normalize_date("2025/11/14") is None
    assert normalize_date("11/14/25") is None
    assert normalize_date("") is None
    assert normalize_date(None) is None


def test_quoted_delimiter_is_one_field():
    assert split_line('PC01,"Dell, Inc.",OptiPlex', ",") == ["PC01", "Dell, Inc.", "OptiPlex"]
    assert split_line('PC01;"a;b";c', ";") == ["PC01", "a;b", "c"]

    layout = detect_layout("Poste,Marque,Modèle")
    record = normalize_row('PC01,"Dell, Inc.",OptiPlex', layout)
    assert record["marque"] == "Dell, Inc."
    assert record["modele"] == "OptiPlex"


def test_row_without_poste_is_rejected():
    layout = detect_layout("Poste,Marque")
    assert normalize_row(",Dell", layout) is None
    assert normalize_row("   ,Dell", layout) is None

    layout = detect_layout("Marque,Modèle")
    assert normalize_row("Dell,OptiPlex", layout) is None


def test_blank_optional_fields_are_absent():
    layout = detect_layout("Poste,Marque,Notes,Date Achat")
    record = normalize_row("  PC09 , ,   ,pas de date", layout)
    assert record["poste"] == "PC09"
    for field in ("marque", "notes", "date_achat"):
        assert field not in record


def test_short_row_keeps_what_is_there():
    layout = detect_layout("Poste,Marque,Modèle")
    record = normalize_row("PC10", layout)
    assert record["poste"] == "PC10"
    assert "marque" not in record


def test_defaults():
    layout = detect_layout("Poste")
    record = normalize_row("PC11", layout)
    assert record == {"poste": "PC11", "category": "PC", "etat": "OK", "alimentation": True}


def test_category_and_status_matching():
    layout = detect_layout("Poste,Catégorie,État")
    assert normalize_row("A,écran,hors service", layout)["category"] == "Écran"
    assert normalize_row("A,écran,hors service", layout)["etat"] == "HS"
    assert normalize_row("B,Tablette,panne", layout)["category"] == "Autre"
    assert normalize_row("B,Tablette,panne", layout)["etat"] == "Panne"
    assert normalize_row("C,,", layout)["category"] == "PC"
    assert normalize_row("C,,bizarre", layout)["etat"] == "OK"


def test_combined_brand_and_model():
    layout = detect_layout("Numéro attribué au poste;Quelle est la marque et le modèle;Alimentation")

    record = normalize_row("PC07;Dell   OptiPlex 7090;Oui", layout)
    assert record["marque"] == "Dell"
    assert record["modele"] == "OptiPlex 7090"
    assert record["alimentation"] is True

    record = normalize_row("PC08;HP;non", layout)
    assert record["marque"] == "HP"
    assert "modele" not in record
    assert record["alimentation"] is False


def test_separate_brand_columns_beat_combined():
    layout = detect_layout("Poste,Marque,Modèle,Marque et modèle")
    record = normalize_row("PC1,Lenovo,T14,Dell X", layout)
    assert record["marque"] == "Lenovo"
    assert record["modele"] == "T14"


def test_power_supply_coercion():
    layout = detect_layout("Poste,Alimentation")
    assert normalize_row("A,Yes", layout)["alimentation"] is True
    assert normalize_row("A,oui (externe)", layout)["alimentation"] is True
    assert normalize_row("A,Non", layout)["alimentation"] is False
    assert normalize_row("A,", layout)["alimentation"] is True


def test_end_to_end_import():
    result = parse_csv(SAMPLE)
    assert [r["poste"] for r in result.records] == ["PC01", "PC03"]
    assert result.skipped == 1

    pc01, pc03 = result.records
    assert pc01["date_achat"] == "2025-11-14"
    assert pc01["marque"] == "Dell"
    assert pc03["category"] == "Écran"
    assert pc03["etat"] == "Panne"
    assert "fin_garantie" not in pc03
    assert "date_achat" not in pc03


def test_parsing_twice_gives_the_same_records():
    assert parse_csv(SAMPLE) == parse_csv(SAMPLE)


def test_files_without_data_lines_import_nothing():
    assert parse_csv("") == ([], 0)
    assert parse_csv("Poste,Marque\n\n   \n") == ([], 0)


def test_blank_lines_and_crlf():
    result = parse_csv("Poste;Marque\r\n\r\nPC1;Dell\r\n\r\n\r\nPC2;HP\r\n")
    assert [(r["poste"], r["marque"]) for r in result.records] == [("PC1", "Dell"), ("PC2", "HP")]
    assert result.skipped == 0


def test_file_with_only_unknown_headers():
    result = parse_csv("Couleur,Taille\nrouge,L\n")
    assert result.records == []
    assert result.skipped == 1


def test_form_export_with_quoted_semicolon():
    text = 'Numéro attribué au poste;Remarques\nPC5;"Écran; clavier fournis"\n'
    record = parse_csv(text).records[0]
    assert record["poste"] == "PC5"
    assert record["notes"] == "Écran; clavier fournis"


def test_uploaded_bytes_decoding():
    assert read_uploaded_csv("\ufeffPoste\nPC1".encode("utf-8")).startswith("Poste")
    assert "Modèle" in read_uploaded_csv("Poste;Modèle\nPC1;X".encode("cp1252"))
    assert read_uploaded_csv("Poste\nPC1") == "Poste\nPC1"


def test_bom_in_header_is_ignored():
    result = parse_csv(read_uploaded_csv("\ufeffPoste,Marque\nPC1,Dell".encode("utf-8")))
    assert result.records[0]["poste"] == "PC1"
    assert csv_utils.match_header("\ufeffPoste") == "poste"


def test_nul_bytes_do_not_break_the_import():
    result = parse_csv("Poste,Marque\nPC1,De\0ll\n")
    assert result.records[0]["poste"] == "PC1"


def test_exact_header_beats_earlier_keyword_column():
    record = parse_csv("Poste,Prix d'achat,Date d'achat\nPC01,450,14/11/2025\n").records[0]
    assert record["date_achat"] == "2025-11-14"

    record = parse_csv("Poste;Durée de garantie;Fin de garantie\nPC01;3 ans;01/01/2027\n").records[0]
    assert record["fin_garantie"] == "2027-01-01"

    assert detect_columns(["Poste", "Prix d'achat", "Date d'achat"]) == {"poste": 0, "date_achat": 2}


def test_keyword_column_used_when_no_exact_header():
    assert detect_columns(["Poste", "Date de l'achat"]) == {"poste": 0, "date_achat": 1}


def test_mixed_date_separators_are_rejected():
    assert normalize_date("14/11-2025") is None
    assert normalize_date("14-11/2025") is None
    assert normalize_date("14-11-2025") == "2025-11-14"
