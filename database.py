import logging
import uuid
from collections import namedtuple
from datetime import date, datetime, timedelta

import bcrypt
from sqlalchemy import create_engine, Column, Integer, String, Boolean, ForeignKey, DateTime, Text, or_, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker, scoped_session, relationship, joinedload

import config
from qr_utils import build_qr_payload

logger = logging.getLogger(__name__)

Base = declarative_base()

BatchResult = namedtuple("BatchResult", ["success", "failed", "errors"])

# Optional text columns: stored trimmed, or NULL, never ""
TEXT_COLUMNS = [
    "marque", "modele", "numero_serie", "date_achat", "fin_garantie", "processeur",
    "ram", "capacite_dd", "os", "adresse_mac", "notes",
]


# --- MODELS ---
class User(Base):
    __tablename__ = 'users'
    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String, unique=True, nullable=False)
    password_hash = Column(String, nullable=False)
    role = Column(String, default='User')
    scope = Column(String, default=config.SCOPE_READ_ONLY)


class Location(Base):
    __tablename__ = 'locations'
    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, unique=True, nullable=False)
    description = Column(String)

    equipment = relationship("Equipment", back_populates="location")

    def to_dict(self):
        return {"id": self.id, "name": self.name, "description": self.description}


class MaintenanceLog(Base):
    __tablename__ = 'maintenance_logs'
    id = Column(Integer, primary_key=True, autoincrement=True)
    equipment_id = Column(String(36), ForeignKey('equipment.id'), nullable=False)
    user_name = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    etat = Column(String)
    timestamp = Column(DateTime, default=datetime.now)
    equipment = relationship("Equipment", back_populates="maintenance_logs")


class ScanHistory(Base):
    __tablename__ = 'scan_history'
    id = Column(Integer, primary_key=True, autoincrement=True)
    equipment_id = Column(String(36), ForeignKey('equipment.id'), nullable=False)
    user_name = Column(String, nullable=False)
    location_id = Column(Integer, ForeignKey('locations.id'))
    scanned_at = Column(DateTime, default=datetime.now)
    equipment = relationship("Equipment", back_populates="scans")


class SystemLog(Base):
    __tablename__ = 'system_logs'
    id = Column(Integer, primary_key=True, autoincrement=True)
    user_name = Column(String)
    action = Column(String, nullable=False)
    details = Column(Text)
    timestamp = Column(DateTime, default=datetime.now)


class Equipment(Base):
    __tablename__ = 'equipment'
    id = Column(String(36), primary_key=True)
    poste = Column(String, nullable=False)
    category = Column(String, nullable=False, default=config.DEFAULT_CATEGORY)
    marque = Column(String)
    modele = Column(String)
    numero_serie = Column(String)
    etat = Column(String, nullable=False, default=config.STATUS_OK)
    date_achat = Column(String(10))
    fin_garantie = Column(String(10))
    processeur = Column(String)
    ram = Column(String)
    capacite_dd = Column(String)
    alimentation = Column(Boolean, default=True)
    os = Column(String)
    adresse_mac = Column(String)
    notes = Column(Text)
    location_id = Column(Integer, ForeignKey('locations.id'))
    qr_code = Column(String)
    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now)

    location = relationship("Location", back_populates="equipment")
    maintenance_logs = relationship("MaintenanceLog", order_by=MaintenanceLog.timestamp.desc(),
                                    back_populates="equipment", cascade="all, delete-orphan")
    scans = relationship("ScanHistory", order_by=ScanHistory.scanned_at.desc(),
                         back_populates="equipment", cascade="all, delete-orphan")

    def to_dict(self):
        data = {c: getattr(self, c) for c in ["id", "poste", "category", "etat", "alimentation",
                                              "location_id", "qr_code"] + TEXT_COLUMNS}
        data["location_name"] = self.location.name if self.location else None
        data["created_at"] = self.created_at.strftime("%Y-%m-%d %H:%M:%S") if self.created_at else None
        data["updated_at"] = self.updated_at.strftime("%Y-%m-%d %H:%M:%S") if self.updated_at else None
        return data


def clean_text(value):
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def hash_password(password):
    return bcrypt.hashpw(password.encode('utf-8'), bcrypt.gensalt()).decode('utf-8')


# --- CONTROLLER ---
class Database:
    def __init__(self, db_url=None):
        self.db_url = db_url or config.DATABASE_URL
        connect_args = {'check_same_thread': False} if self.db_url.startswith("sqlite") else {}
        self.engine = create_engine(self.db_url, connect_args=connect_args)
        Base.metadata.create_all(self.engine)
        self.Session = scoped_session(sessionmaker(bind=self.engine))
        self.create_default_admin()

    def get_session(self):
        return self.Session()

    def create_default_admin(self):
        session = self.get_session()
        try:
            if session.query(User).count() == 0:
                admin = User(username="admin", password_hash=hash_password(config.DEFAULT_ADMIN_PASSWORD),
                             role="Admin", scope=config.SCOPE_ADMIN)
                session.add(admin)
                session.commit()
                logger.warning("Created default 'admin' account, change its password")
        finally:
            session.close()

    # --- USER AUTH ---
    def verify_user(self, username, password):
        session = self.get_session()
        user = session.query(User).filter_by(username=username).first()
        result = (user.id, user.username, user.role, user.scope, user.password_hash) if user else None
        session.close()

        if result and bcrypt.checkpw(password.encode('utf-8'), result[4].encode('utf-8')):
            return result[:4]
        logger.info("Failed login for %r", username)
        return None

    def add_user(self, username, password, role="User", scope=config.SCOPE_READ_ONLY):
        session = self.get_session()
        try:
            if session.query(User).filter_by(username=username).first():
                return False
            session.add(User(username=username, password_hash=hash_password(password), role=role, scope=scope))
            session.commit()
            return True
        finally:
            session.close()

    def get_all_users(self):
        session = self.get_session()
        users = session.query(User).order_by(User.username).all()
        result = [(u.id, u.username, u.role, u.scope) for u in users]
        session.close()
        return result

    def delete_user(self, user_id):
        session = self.get_session()
        user = session.query(User).filter_by(id=user_id).first()
        if user:
            session.delete(user)
            session.commit()
        session.close()
        return user is not None

    def update_user_scope(self, user_id, new_scope):
        if new_scope not in config.ALL_SCOPES:
            raise ValueError(f"Unknown scope: {new_scope}")
        session = self.get_session()
        user = session.query(User).filter_by(id=user_id).first()
        if user:
            user.scope = new_scope
            user.role = "Admin" if new_scope == config.SCOPE_ADMIN else "User"
            session.commit()
        session.close()
        return user is not None

    def update_user_password(self, user_id, new_password):
        session = self.get_session()
        user = session.query(User).filter_by(id=user_id).first()
        if user:
            user.password_hash = hash_password(new_password)
            session.commit()
        session.close()
        return user is not None

    # --- LOCATIONS ---
    def add_location(self, name, description=None):
        name = clean_text(name)
        if not name:
            return None
        session = self.get_session()
        try:
            location = Location(name=name, description=clean_text(description))
            session.add(location)
            session.commit()
            return location.id
        except SQLAlchemyError:
            logger.exception("Could not add location %r", name)
            session.rollback()
            return None
        finally:
            session.close()

    def get_all_locations(self):
        session = self.get_session()
        result = [loc.to_dict() for loc in session.query(Location).order_by(Location.name).all()]
        session.close()
        return result

    def get_location_names(self):
        return {loc["id"]: loc["name"] for loc in self.get_all_locations()}

    def delete_location(self, location_id):
        # Equipment in the room becomes unassigned
        session = self.get_session()
        try:
            location = session.query(Location).filter_by(id=location_id).first()
            if not location:
                return False
            session.query(Equipment).filter_by(location_id=location_id).update({"location_id": None})
            session.delete(location)
            session.commit()
            return True
        finally:
            session.close()

    # --- EQUIPMENT ---
    def _build_equipment(self, data, location_ids):
        """Equipment row from a partial record; raises ValueError if the record is unusable."""
        poste = clean_text(data.get("poste"))
        if not poste:
            raise ValueError("poste vide")

        category = data.get("category") or config.DEFAULT_CATEGORY
        if category not in config.CATEGORIES:
            raise ValueError(f"catégorie inconnue: {category}")
        etat = data.get("etat") or config.STATUS_OK
        if etat not in config.STATUSES:
            raise ValueError(f"état inconnu: {etat}")

        location_id = data.get("location_id")
        if location_id is None and data.get("emplacement"):
            location_id = location_ids.get(data["emplacement"].strip().lower())

        equipment_id = str(uuid.uuid4())
        now = datetime.now()
        equipment = Equipment(
            id=equipment_id, poste=poste, category=category, etat=etat,
            alimentation=data.get("alimentation", True) is not False,
            location_id=location_id, qr_code=build_qr_payload(equipment_id),
            created_at=now, updated_at=now,
        )
        for field in TEXT_COLUMNS:
            setattr(equipment, field, clean_text(data.get(field)))
        return equipment

    def _location_ids_by_name(self, session):
        return {name.lower(): loc_id for loc_id, name in session.query(Location.id, Location.name).all()}

    def add_equipment(self, data, user_name=None):
        """Insert one item. Returns its id, or None when the database refused it."""
        session = self.get_session()
        try:
            equipment = self._build_equipment(data, self._location_ids_by_name(session))
            session.add(equipment)
            session.add(SystemLog(user_name=user_name, action="EQUIPMENT_CREATE",
                                  details=f"{equipment.poste} ({equipment.category})"))
            session.commit()
            return equipment.id
        except SQLAlchemyError:
            logger.exception("Could not add equipment %r", data.get("poste"))
            session.rollback()
            return None
        finally:
            session.close()

    def batch_import(self, records, user_name=None):
        """Insert parsed CSV records in chunks of BATCH_SIZE.

        A failing chunk is rolled back and counted as failed; the following
        chunks are still attempted.
        """
        success, failed, errors = 0, 0, []
        session = self.get_session()
        try:
            location_ids = self._location_ids_by_name(session)
            prepared = []
            for record_no, data in enumerate(records, start=1):
                try:
                    prepared.append(self._build_equipment(data, location_ids))
                except ValueError as e:
                    failed += 1
                    errors.append(f"Enregistrement {record_no}: {e}")

            for start in range(0, len(prepared), config.BATCH_SIZE):
                batch = prepared[start:start + config.BATCH_SIZE]
                batch_no = start // config.BATCH_SIZE + 1
                try:
                    session.add_all(batch)
                    session.commit()
                    success += len(batch)
                except SQLAlchemyError as e:
                    logger.exception("Import batch %d failed", batch_no)
                    session.rollback()
                    failed += len(batch)
                    errors.append(f"Lot {batch_no}: {e.__class__.__name__}")

            session.add(SystemLog(user_name=user_name, action="CSV_IMPORT",
                                  details=f"{success} importé(s), {failed} en erreur"))
            session.commit()
        finally:
            session.close()

        logger.info("Batch import: %d success, %d failed", success, failed)
        return BatchResult(success, failed, errors)

    def get_all_equipment(self, category=None, etat=None, location_id=None, search_query=None, limit=None, offset=0):
        session = self.get_session()
        query = session.query(Equipment)

        if category and category != "Tous":
            query = query.filter(Equipment.category == category)
        if etat and etat != "Tous":
            query = query.filter(Equipment.etat == etat)
        if location_id is not None:
            query = query.filter(Equipment.location_id == location_id)

        if search_query:
            for term in search_query.split():
                term_filter = f"%{term}%"
                query = query.filter(or_(
                    Equipment.poste.ilike(term_filter),
                    Equipment.marque.ilike(term_filter),
                    Equipment.modele.ilike(term_filter),
                    Equipment.numero_serie.ilike(term_filter),
                    Equipment.adresse_mac.ilike(term_filter),
                ))

        total_count = query.count()
        query = query.options(joinedload(Equipment.location)).order_by(Equipment.created_at.desc())

        if limit:
            query = query.limit(limit).offset(offset)

        results = [e.to_dict() for e in query.all()]
        session.close()
        return results, total_count

    def get_equipment_by_id(self, equipment_id):
        session = self.get_session()
        equipment = session.query(Equipment).filter_by(id=equipment_id).first()
        result = equipment.to_dict() if equipment else None
        session.close()
        return result

    def update_equipment(self, equipment_id, data, user_name=None):
        """Apply edits. Blank text never overwrites a stored value."""
        session = self.get_session()
        try:
            equipment = session.query(Equipment).filter_by(id=equipment_id).first()
            if not equipment:
                return False

            for field in ["poste"] + TEXT_COLUMNS:
                if field in data:
                    value = clean_text(data[field])
                    if value is not None:
                        setattr(equipment, field, value)
            if data.get("category") in config.CATEGORIES:
                equipment.category = data["category"]
            if data.get("etat") in config.STATUSES:
                equipment.etat = data["etat"]
            if "alimentation" in data and data["alimentation"] is not None:
                equipment.alimentation = bool(data["alimentation"])
            if "location_id" in data:
                equipment.location_id = data["location_id"]

            equipment.updated_at = datetime.now()
            session.add(SystemLog(user_name=user_name, action="EQUIPMENT_UPDATE", details=equipment.poste))
            session.commit()
            return True
        except SQLAlchemyError:
            logger.exception("Update failed for equipment %s", equipment_id)
            session.rollback()
            return False
        finally:
            session.close()

    def delete_equipment(self, equipment_id, user_name=None):
        return self.batch_delete([equipment_id], user_name).success == 1

    def batch_delete(self, equipment_ids, user_name=None):
        success, failed, errors = 0, 0, []
        session = self.get_session()
        try:
            for start in range(0, len(equipment_ids), config.BATCH_SIZE):
                batch = equipment_ids[start:start + config.BATCH_SIZE]
                try:
                    items = session.query(Equipment).filter(Equipment.id.in_(batch)).all()
                    for item in items:
                        session.delete(item)
                    session.commit()
                    success += len(items)
                    failed += len(batch) - len(items)
                except SQLAlchemyError as e:
                    logger.exception("Delete batch failed")
                    session.rollback()
                    failed += len(batch)
                    errors.append(str(e))

            if success:
                session.add(SystemLog(user_name=user_name, action="EQUIPMENT_DELETE",
                                      details=f"{success} supprimé(s)"))
                session.commit()
        finally:
            session.close()
        return BatchResult(success, failed, errors)

    # --- SCANS ---
    def add_scan(self, equipment_id, user_name, location_id=None, is_admin=False):
        """Record a verified scan. Non-admins may only scan an item once."""
        session = self.get_session()
        try:
            if not session.query(Equipment).filter_by(id=equipment_id).first():
                return False
            if not is_admin and session.query(ScanHistory).filter_by(
                    equipment_id=equipment_id, user_name=user_name).first():
                return False
            session.add(ScanHistory(equipment_id=equipment_id, user_name=user_name,
                                    location_id=location_id, scanned_at=datetime.now()))
            session.commit()
            return True
        except SQLAlchemyError:
            logger.exception("Could not record scan of %s", equipment_id)
            session.rollback()
            return False
        finally:
            session.close()

    def get_scan_history(self, equipment_id):
        session = self.get_session()
        scans = session.query(ScanHistory).filter_by(equipment_id=equipment_id).order_by(ScanHistory.scanned_at.desc()).all()
        result = [{"Date": s.scanned_at, "Utilisateur": s.user_name, "Emplacement": s.location_id} for s in scans]
        session.close()
        return result

    # --- MAINTENANCE ---
    def add_maintenance_log(self, equipment_id, user_name, description, new_etat=None):
        if new_etat is not None and new_etat not in config.STATUSES:
            raise ValueError(f"état inconnu: {new_etat}")
        description = clean_text(description)
        if not description:
            return False

        session = self.get_session()
        try:
            equipment = session.query(Equipment).filter_by(id=equipment_id).first()
            if not equipment:
                return False
            session.add(MaintenanceLog(equipment_id=equipment_id, user_name=user_name,
                                       description=description, etat=new_etat, timestamp=datetime.now()))
            if new_etat:
                equipment.etat = new_etat
            equipment.updated_at = datetime.now()
            session.commit()
            return True
        except SQLAlchemyError:
            logger.exception("Could not add maintenance log for %s", equipment_id)
            session.rollback()
            return False
        finally:
            session.close()

    def get_maintenance_logs(self, equipment_id):
        session = self.get_session()
        logs = session.query(MaintenanceLog).filter_by(equipment_id=equipment_id).order_by(MaintenanceLog.timestamp.desc()).all()
        result = [{"Date": l.timestamp, "Utilisateur": l.user_name, "Description": l.description, "État": l.etat} for l in logs]
        session.close()
        return result

    # --- SYSTEM LOGS ---
    def log_action(self, user_name, action, details=None):
        session = self.get_session()
        try:
            session.add(SystemLog(user_name=user_name, action=action, details=details, timestamp=datetime.now()))
            session.commit()
        except SQLAlchemyError:
            logger.exception("Could not write system log %s", action)
            session.rollback()
        finally:
            session.close()

    def get_system_logs(self, limit=500):
        session = self.get_session()
        logs = session.query(SystemLog).order_by(SystemLog.timestamp.desc(), SystemLog.id.desc()).limit(limit).all()
        result = [{"Timestamp": l.timestamp, "Action": l.action, "User": l.user_name, "Details": l.details} for l in logs]
        session.close()
        return result

    # --- STATS ---
    def get_stats(self, warranty_days=90):
        session = self.get_session()
        total = session.query(Equipment).count()
        by_status = {s: 0 for s in config.STATUSES}
        by_status.update(dict(session.query(Equipment.etat, func.count(Equipment.id)).group_by(Equipment.etat).all()))
        by_category = dict(session.query(Equipment.category, func.count(Equipment.id)).group_by(Equipment.category).all())
        locations = session.query(Location).count()

        today = date.today()
        horizon = (today + timedelta(days=warranty_days)).isoformat()
        expiring = session.query(Equipment).filter(
            Equipment.fin_garantie != None,
            Equipment.fin_garantie >= today.isoformat(),
            Equipment.fin_garantie <= horizon,
        ).count()
        session.close()

        return {
            "total": total,
            "by_status": by_status,
            "by_category": by_category,
            "locations": locations,
            "warranty_expiring": expiring,
        }
