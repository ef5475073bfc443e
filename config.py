# config.py
import os

APP_NAME = "EPIL Inventaire"
APP_VERSION = os.environ.get("APP_VERSION", "1.4.0")

# Database
DATABASE_URL = os.environ.get("DATABASE_URL", "sqlite:///inventaire.db")
DEFAULT_ADMIN_PASSWORD = os.environ.get("DEFAULT_ADMIN_PASSWORD", "admin123")

# Logging
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
LOG_FILE = os.environ.get("LOG_FILE", "")

# Scopes / Permissions
SCOPE_ADMIN = "Admin"               # Full Access
SCOPE_TECHNICIAN = "Technicien"     # Can add/edit/scan/import, cannot manage users
SCOPE_READ_ONLY = "Lecture seule"   # Can only view dashboard and search
ALL_SCOPES = [SCOPE_READ_ONLY, SCOPE_TECHNICIAN, SCOPE_ADMIN]

# Equipment
CATEGORIES = [
    "PC", "Écran", "Clavier", "Souris", "Imprimante", "Switch", "Routeur",
    "Autre", "Composant", "Processeur", "Alimentation", "Serveur", "Onduleur",
    "Câble", "Disque dur", "RAM", "Carte graphique", "Carte mère", "Boîtier",
    "Ventilateur", "Webcam", "Casque", "Microphone",
]
DEFAULT_CATEGORY = "PC"
FALLBACK_CATEGORY = "Autre"

STATUS_OK = "OK"
STATUS_BROKEN = "Panne"
STATUS_RETIRED = "HS"
STATUSES = [STATUS_OK, STATUS_BROKEN, STATUS_RETIRED]

# QR codes: payload is QR_BASE_URL + equipment id
QR_BASE_URL = os.environ.get("QR_BASE_URL", "http://epil.local/equip/")

# Import / persistence
BATCH_SIZE = int(os.environ.get("BATCH_SIZE", "50"))

# New equipment webhook (disabled when empty)
WEBHOOK_URL = os.environ.get("WEBHOOK_URL", "")
WEBHOOK_TIMEOUT = float(os.environ.get("WEBHOOK_TIMEOUT", "5"))
WEBHOOK_SOURCE = "epil-inventory"

# CSV export: (record field, column header)
EXPORT_COLUMNS = [
    ("id", "ID"),
    ("poste", "Poste"),
    ("category", "Catégorie"),
    ("marque", "Marque"),
    ("modele", "Modèle"),
    ("numero_serie", "N° Série"),
    ("etat", "État"),
    ("date_achat", "Date Achat"),
    ("fin_garantie", "Fin Garantie"),
    ("processeur", "Processeur"),
    ("ram", "RAM"),
    ("capacite_dd", "Capacité DD"),
    ("alimentation", "Alimentation"),
    ("os", "OS"),
    ("adresse_mac", "Adresse MAC"),
    ("notes", "Notes"),
]
EXPORT_PREFIX = "inventaire_epil"

# Room audit
AUDIT_FOUND = "Trouvé"
AUDIT_MISSING = "Manquant"
AUDIT_DISPLACED = "Déplacé"
AUDIT_UNASSIGNED = "Non assigné"
AUDIT_COLUMNS = ["Statut", "Poste", "Catégorie", "Emplacement actuel"]

# Equipment photos: one folder per equipment id under PHOTOS_DIR
PHOTOS_DIR = os.environ.get("PHOTOS_DIR", "photos")
PHOTO_MAX_BYTES = 5 * 1024 * 1024
PHOTO_EXTENSIONS = (".jpg", ".jpeg", ".png", ".gif", ".webp", ".bmp")
