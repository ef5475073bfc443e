# photos.py
import logging
import os
import shutil
from datetime import datetime

import config

logger = logging.getLogger(__name__)


def photo_dir(equipment_id, base_dir=None):
    base_dir = base_dir or config.PHOTOS_DIR
    # ids are uuids; refuse anything that would leave base_dir
    if not equipment_id or os.path.basename(equipment_id) != equipment_id or equipment_id in (".", ".."):
        raise ValueError(f"Identifiant invalide : {equipment_id!r}")
    return os.path.join(base_dir, equipment_id)


def save_photo(equipment_id, filename, data, base_dir=None):
    """Store an uploaded image for one equipment item. Returns the stored name.

    Only image extensions are accepted, up to PHOTO_MAX_BYTES. The stored
    name is a timestamp so two uploads of "photo.jpg" do not collide.
    """
    ext = os.path.splitext(filename or "")[1].lower()
    if ext not in config.PHOTO_EXTENSIONS:
        raise ValueError("Le fichier doit être une image")
    if len(data) > config.PHOTO_MAX_BYTES:
        raise ValueError("L'image ne doit pas dépasser 5 Mo")

    folder = photo_dir(equipment_id, base_dir)
    os.makedirs(folder, exist_ok=True)

    name = f"{datetime.now():%Y%m%d%H%M%S%f}{ext}"
    with open(os.path.join(folder, name), "wb") as f:
        f.write(data)
    logger.info("Saved photo %s for equipment %s", name, equipment_id)
    return name


def list_photos(equipment_id, base_dir=None):
    """Stored photo names for one item, oldest first."""
    folder = photo_dir(equipment_id, base_dir)
    if not os.path.isdir(folder):
        return []
    return sorted(f for f in os.listdir(folder) if os.path.splitext(f)[1].lower() in config.PHOTO_EXTENSIONS)


def photo_path(equipment_id, name, base_dir=None):
    if os.path.basename(name) != name:
        raise ValueError(f"Nom de photo invalide : {name!r}")
    return os.path.join(photo_dir(equipment_id, base_dir), name)


def delete_photo(equipment_id, name, base_dir=None):
    path = photo_path(equipment_id, name, base_dir)
    if not os.path.isfile(path):
        return False
    os.remove(path)
    logger.info("Deleted photo %s of equipment %s", name, equipment_id)
    return True


def delete_all_photos(equipment_id, base_dir=None):
    folder = photo_dir(equipment_id, base_dir)
    if os.path.isdir(folder):
        shutil.rmtree(folder)
