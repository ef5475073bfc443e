# audit.py
import csv
import logging
from collections import namedtuple

import pandas as pd

import config
from qr_utils import equipment_id_from_scan

logger = logging.getLogger(__name__)

AuditResult = namedtuple("AuditResult", ["found", "missing", "displaced", "unknown"])


def reconcile(equipment, location_id, scanned_ids):
    """Compare what was scanned in a room with what is expected there.

    found     -- expected at location_id and scanned
    missing   -- expected at location_id, not scanned
    displaced -- scanned, but assigned elsewhere (or nowhere)
    unknown   -- scanned ids matching no equipment at all

    Lists keep the order of `equipment`; unknown keeps scan order.
    """
    scanned_ids = list(dict.fromkeys(scanned_ids))
    scanned = set(scanned_ids)
    found, missing, displaced = [], [], []
    known_ids = set()

    for item in equipment:
        known_ids.add(item["id"])
        expected_here = location_id is not None and item.get("location_id") == location_id
        was_scanned = item["id"] in scanned
        if expected_here and was_scanned:
            found.append(item)
        elif expected_here:
            missing.append(item)
        elif was_scanned:
            displaced.append(item)

    unknown = [i for i in scanned_ids if i not in known_ids]
    return AuditResult(found, missing, displaced, unknown)


class AuditSession:
    """One room audit run: the chosen location and the ids seen so far."""

    def __init__(self, location_id):
        self.location_id = location_id
        self._scanned = {}

    @property
    def scanned_ids(self):
        return list(self._scanned)

    def __len__(self):
        return len(self._scanned)

    def __contains__(self, equipment_id):
        return equipment_id in self._scanned

    def record(self, decoded_text):
        """Add the id carried by a decoded code. Returns it if new, else None."""
        equipment_id = equipment_id_from_scan(decoded_text)
        if equipment_id is None or equipment_id in self._scanned:
            return None

        self._scanned[equipment_id] = True
        logger.debug("Audit %s: scanned %s", self.location_id, equipment_id)
        return equipment_id

    def reset(self, location_id=None):
        if location_id is not None:
            self.location_id = location_id
        self._scanned.clear()

    def reconcile(self, equipment):
        result = reconcile(equipment, self.location_id, self.scanned_ids)
        logger.info(
            "Audit %s: %d found, %d missing, %d displaced, %d unknown",
            self.location_id, len(result.found), len(result.missing),
            len(result.displaced), len(result.unknown),
        )
        return result


def export_audit_csv(result, location_label, location_names=None):
    """Audit report: one row per found, missing and displaced item."""
    location_names = location_names or {}
    rows = []
    for item in result.found:
        rows.append([config.AUDIT_FOUND, item["poste"], item["category"], location_label])
    for item in result.missing:
        rows.append([config.AUDIT_MISSING, item["poste"], item["category"], location_label])
    for item in result.displaced:
        current = location_names.get(item.get("location_id")) or config.AUDIT_UNASSIGNED
        rows.append([config.AUDIT_DISPLACED, item["poste"], item["category"], current])

    df = pd.DataFrame(rows, columns=config.AUDIT_COLUMNS)
    return df.to_csv(index=False, quoting=csv.QUOTE_ALL, lineterminator="\n")
