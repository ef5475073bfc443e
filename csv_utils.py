# csv_utils.py
import csv
import logging
import re
from collections import namedtuple
from datetime import date

import pandas as pd

import config

logger = logging.getLogger(__name__)

CsvLayout = namedtuple("CsvLayout", ["delimiter", "columns"])
ImportResult = namedtuple("ImportResult", ["records", "skipped"])

# --- HEADER TABLE ---
# Exact spellings (lowercase) accepted for each canonical field. Covers the
# "professional" export (short column names) and our own export headers.
HEADER_SPELLINGS = {
    "poste": ("poste", "n° poste", "numéro de poste", "numero de poste"),
    "category": ("catégorie", "categorie", "category", "type"),
    "marque": ("marque", "brand", "fabricant"),
    "modele": ("modèle", "modele", "model"),
    "marque_modele": ("marque et modèle", "marque/modèle", "marque / modèle"),
    "numero_serie": ("n° série", "n° serie", "numéro de série", "numero de serie", "numero serie", "serial", "s/n"),
    "etat": ("état", "etat", "statut", "status"),
    "date_achat": ("date achat", "date d'achat", "date_achat"),
    "fin_garantie": ("fin garantie", "fin de garantie", "fin_garantie", "garantie"),
    "processeur": ("processeur", "cpu"),
    "ram": ("ram", "mémoire", "mémoire ram", "memoire"),
    "capacite_dd": ("capacité dd", "capacite dd", "disque dur", "capacité disque", "stockage"),
    "alimentation": ("alimentation",),
    "os": ("os", "système d'exploitation", "systeme d'exploitation"),
    "adresse_mac": ("adresse mac", "mac"),
    "notes": ("notes", "remarques", "commentaires", "observations"),
    "emplacement": ("emplacement", "salle", "localisation"),
}

# Keyword rules for long "form" headers ("Numéro attribué au poste",
# "Quelle est la marque et le modèle ?"). Checked in this order, keywords
# matched as whole words; generic words like "poste" come last.
HEADER_KEYWORDS = [
    ("marque_modele", ("marque et le modèle", "marque et modèle", "marque et le modele")),
    ("numero_serie", ("série", "serie", "serial")),
    ("date_achat", ("achat", "acheté")),
    ("fin_garantie", ("garantie",)),
    ("etat", ("état", "etat", "statut")),
    ("processeur", ("processeur", "cpu")),
    ("ram", ("ram", "mémoire vive")),
    ("capacite_dd", ("disque", "stockage")),
    ("alimentation", ("alimentation",)),
    ("os", ("système d'exploitation", "systeme d'exploitation", "os")),
    ("adresse_mac", ("mac",)),
    ("notes", ("remarque", "remarques", "commentaire", "commentaires", "observation", "observations", "notes")),
    ("category", ("catégorie", "categorie", "type d'équipement", "type de matériel")),
    ("marque", ("marque", "fabricant")),
    ("modele", ("modèle", "modele")),
    ("emplacement", ("emplacement", "salle", "localisation")),
    ("poste", ("numéro attribué", "poste")),
]

TEXT_FIELDS = [
    "marque", "modele", "numero_serie", "processeur", "ram",
    "capacite_dd", "os", "adresse_mac", "notes", "emplacement",
]

STATUS_ALIASES = {
    "ok": config.STATUS_OK,
    "bon": config.STATUS_OK,
    "fonctionnel": config.STATUS_OK,
    "panne": config.STATUS_BROKEN,
    "en panne": config.STATUS_BROKEN,
    "hs": config.STATUS_RETIRED,
    "hors service": config.STATUS_RETIRED,
}

ISO_DATE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")
DMY_DATE = re.compile(r"^(\d{1,2})([/-])(\d{1,2})\2(\d{4})$")


# --- DETECTOR ---
def detect_delimiter(header_line):
    """Pick ';' when the header holds strictly more semicolons than commas, else ','.

    Characters inside double quotes are not counted, so a quoted header
    such as "Marque, modèle" cannot tip the balance.
    """
    commas = semicolons = 0
    in_quotes = False
    for char in header_line:
        if char == '"':
            in_quotes = not in_quotes
        elif in_quotes:
            continue
        elif char == ",":
            commas += 1
        elif char == ";":
            semicolons += 1
    return ";" if semicolons > commas else ","


def _clean_header(header):
    return header.replace("\ufeff", "").replace('"', "").strip().lower()


def _exact_field(name):
    for field, spellings in HEADER_SPELLINGS.items():
        if name in spellings:
            return field
    return None


def _keyword_field(name):
    for field, keywords in HEADER_KEYWORDS:
        for keyword in keywords:
            if re.search(r"\b" + re.escape(keyword) + r"\b", name):
                return field
    return None


def match_header(header):
    """Return the canonical field for one header cell, or None if unrecognized."""
    name = _clean_header(header)
    if not name:
        return None
    return _exact_field(name) or _keyword_field(name)


def detect_columns(header_fields):
    """Map canonical fields to column indexes.

    Exact spellings are assigned first; keyword matches only fill fields no
    exact header claimed, so "Prix d'achat" cannot shadow "Date d'achat".
    Within each pass the first column wins.
    """
    names = [_clean_header(h) for h in header_fields]
    columns = {}
    for index, name in enumerate(names):
        field = _exact_field(name) if name else None
        if field is not None:
            columns.setdefault(field, index)

    for index, name in enumerate(names):
        if not name or _exact_field(name) is not None:
            continue
        field = _keyword_field(name)
        if field is None:
            logger.debug("Ignoring unrecognized CSV column %r", header_fields[index])
            continue
        columns.setdefault(field, index)
    return columns


def detect_layout(header_line):
    delimiter = detect_delimiter(header_line)
    return CsvLayout(delimiter, detect_columns(split_line(header_line, delimiter)))


# --- ROW NORMALIZER ---
def split_line(line, delimiter):
    """Split one CSV line, keeping delimiters that sit inside double quotes."""
    try:
        fields = next(csv.reader([line], delimiter=delimiter, skipinitialspace=True), [])
    except csv.Error:
        # e.g. stray NUL bytes from a spreadsheet export
        fields = line.replace("\0", "").split(delimiter)
    return [f.replace('"', "") for f in fields]


def normalize_date(value):
    """Return an ISO date (YYYY-MM-DD) or None when the text is not a usable date."""
    if not value:
        return None
    value = value.strip()

    match = ISO_DATE.match(value)
    if match:
        year, month, day = match.groups()
    else:
        match = DMY_DATE.match(value)
        if not match:
            return None
        day, _, month, year = match.groups()

    try:
        return date(int(year), int(month), int(day)).isoformat()
    except ValueError:
        return None


def normalize_category(value):
    if not value:
        return config.DEFAULT_CATEGORY
    for category in config.CATEGORIES:
        if category.lower() == value.lower():
            return category
    return config.FALLBACK_CATEGORY


def normalize_status(value):
    if not value:
        return config.STATUS_OK
    return STATUS_ALIASES.get(value.lower(), config.STATUS_OK)


def parse_power_supply(value):
    # Absent means "has a supply": most PCs do
    if value is None:
        return True
    value = value.lower()
    return "oui" in value or "yes" in value


def normalize_row(line, layout):
    """Turn one data line into a partial equipment dict.

    Returns None when the row has no poste. Optional fields that are empty
    after trimming are left out of the dict entirely.
    """
    values = split_line(line, layout.delimiter)

    def get(field):
        index = layout.columns.get(field)
        if index is None or index >= len(values):
            return None
        value = values[index].strip()
        return value or None

    poste = get("poste")
    if poste is None:
        return None

    record = {
        "poste": poste,
        "category": normalize_category(get("category")),
        "etat": normalize_status(get("etat")),
        "alimentation": parse_power_supply(get("alimentation")),
    }

    for field in TEXT_FIELDS:
        value = get(field)
        if value is not None:
            record[field] = value

    combined = get("marque_modele")
    if combined and "marque" not in record and "modele" not in record:
        parts = combined.split(None, 1)
        record["marque"] = parts[0]
        if len(parts) > 1:
            record["modele"] = parts[1]

    for field in ("date_achat", "fin_garantie"):
        value = normalize_date(get(field))
        if value is not None:
            record[field] = value

    return record


# --- IMPORT PIPELINE ---
def parse_csv(text):
    """Parse a whole CSV file into an ImportResult.

    Records keep file order. Files with fewer than two non-blank lines give
    an empty result.
    """
    lines = [line for line in text.splitlines() if line.strip()]
    if len(lines) < 2:
        return ImportResult([], 0)

    layout = detect_layout(lines[0])
    logger.debug("CSV layout: delimiter=%r columns=%s", layout.delimiter, layout.columns)

    records = []
    skipped = 0
    for line_no, line in enumerate(lines[1:], start=2):
        record = normalize_row(line, layout)
        if record is None:
            logger.debug("Skipping CSV line %d: no poste", line_no)
            skipped += 1
            continue
        records.append(record)

    logger.info("Parsed CSV: %d accepted, %d skipped", len(records), skipped)
    return ImportResult(records, skipped)


def read_uploaded_csv(data):
    """Decode an uploaded file's bytes (UTF-8 with or without BOM, else cp1252)."""
    if isinstance(data, str):
        return data
    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError:
        logger.warning("CSV upload is not UTF-8, falling back to cp1252")
        return data.decode("cp1252", errors="replace")


# --- EXPORT SERIALIZER ---
def _export_value(field, value):
    if value is None:
        return ""
    if field == "alimentation":
        return "Oui" if value else "Non"
    return str(value)


def export_equipment_csv(equipment):
    """Render equipment dicts as comma-separated text with every cell quoted."""
    rows = []
    for item in equipment:
        rows.append([_export_value(field, item.get(field)) for field, _ in config.EXPORT_COLUMNS])

    df = pd.DataFrame(rows, columns=[label for _, label in config.EXPORT_COLUMNS])
    return df.to_csv(index=False, quoting=csv.QUOTE_ALL, lineterminator="\n")


def export_filename(prefix=config.EXPORT_PREFIX):
    return f"{prefix}_{date.today().isoformat()}.csv"


def to_csv_bytes(text):
    # BOM so spreadsheet software picks UTF-8 for accented headers
    return text.encode("utf-8-sig")
