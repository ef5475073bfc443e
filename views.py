import streamlit as st
import pandas as pd
import time
import plotly.express as px
from datetime import date, datetime
import config
import cv2
import numpy as np
from pyzbar.pyzbar import decode

import csv_utils
import photos
import qr_utils
from audit import AuditSession, export_audit_csv
from notifications import notify_equipment_added

STATUS_EMOJI = {config.STATUS_OK: "🟢", config.STATUS_BROKEN: "🟠", config.STATUS_RETIRED: "🔴"}
ALL_FILTER = "Tous"


# --- HELPER: WARRANTY CHECK ---
def get_warranty_status(fin_garantie):
    if not fin_garantie:
        return "⚪", "Garantie inconnue"
    try:
        end = date.fromisoformat(fin_garantie)
    except ValueError:
        return "⚪", "Garantie inconnue"
    days = (end - date.today()).days
    if days < 0:
        return "🔴", "Garantie expirée"
    if days <= 90:
        return "🟠", f"Expire dans {days} j"
    return "🟢", "Sous garantie"


# --- HELPER: CAMERA DECODE ---
def decode_camera_image(image_bytes):
    cv_image = cv2.imdecode(np.frombuffer(image_bytes, np.uint8), cv2.IMREAD_COLOR)
    if cv_image is None:
        return []
    return [obj.data.decode("utf-8") for obj in decode(cv_image)]


def can_write(user_scope):
    return user_scope in (config.SCOPE_ADMIN, config.SCOPE_TECHNICIAN)


def scan_status(recorded, writable):
    if not writable:
        return "👁️ Non enregistré (lecture seule)"
    return "✅ Vérifié" if recorded else "☑️ Déjà scanné"


def equipment_form(key, locations, initial=None):
    """Shared add/edit fields. Returns the data dict (blank fields as "")."""
    initial = initial or {}
    loc_ids = [None] + [loc["id"] for loc in locations]
    loc_names = {loc["id"]: loc["name"] for loc in locations}

    c1, c2, c3 = st.columns(3)
    with c1:
        poste = st.text_input("Poste *", value=initial.get("poste") or "", key=f"{key}_poste")
        marque = st.text_input("Marque", value=initial.get("marque") or "", key=f"{key}_marque")
        date_achat = st.text_input("Date d'achat", value=initial.get("date_achat") or "", placeholder="JJ/MM/AAAA", key=f"{key}_achat")
    with c2:
        cat = initial.get("category") or config.DEFAULT_CATEGORY
        category = st.selectbox("Catégorie *", config.CATEGORIES, index=config.CATEGORIES.index(cat), key=f"{key}_cat")
        modele = st.text_input("Modèle", value=initial.get("modele") or "", key=f"{key}_modele")
        fin_garantie = st.text_input("Fin de garantie", value=initial.get("fin_garantie") or "", placeholder="JJ/MM/AAAA", key=f"{key}_garantie")
    with c3:
        etat = st.selectbox("État *", config.STATUSES, index=config.STATUSES.index(initial.get("etat") or config.STATUS_OK), key=f"{key}_etat")
        serial = st.text_input("N° Série", value=initial.get("numero_serie") or "", key=f"{key}_serie")
        current_loc = initial.get("location_id")
        location_id = st.selectbox("Emplacement", loc_ids, index=loc_ids.index(current_loc) if current_loc in loc_ids else 0,
                                   format_func=lambda i: loc_names.get(i, "Non assigné"), key=f"{key}_loc")

    data = {
        "poste": poste, "category": category, "etat": etat, "marque": marque, "modele": modele,
        "numero_serie": serial, "date_achat": date_achat, "fin_garantie": fin_garantie, "location_id": location_id,
    }

    if category == "PC":
        st.caption("Configuration PC")
        p1, p2, p3 = st.columns(3)
        data["processeur"] = p1.text_input("Processeur", value=initial.get("processeur") or "", key=f"{key}_cpu")
        data["ram"] = p2.text_input("RAM", value=initial.get("ram") or "", key=f"{key}_ram")
        data["capacite_dd"] = p3.text_input("Capacité DD", value=initial.get("capacite_dd") or "", key=f"{key}_dd")
        p4, p5, p6 = st.columns(3)
        data["os"] = p4.text_input("OS", value=initial.get("os") or "", key=f"{key}_os")
        data["adresse_mac"] = p5.text_input("Adresse MAC", value=initial.get("adresse_mac") or "", key=f"{key}_mac")
        data["alimentation"] = p6.checkbox("Alimentation", value=initial.get("alimentation", True) is not False, key=f"{key}_alim")

    data["notes"] = st.text_area("Notes", value=initial.get("notes") or "", key=f"{key}_notes")
    return data


def validate_form(data):
    errors = []
    if not data["poste"].strip():
        errors.append("Poste obligatoire")
    for field, label in (("date_achat", "Date d'achat"), ("fin_garantie", "Fin de garantie")):
        raw = data.get(field, "").strip()
        if raw:
            parsed = csv_utils.normalize_date(raw)
            if parsed is None:
                errors.append(f"{label} invalide")
            data[field] = parsed
    return errors


# --- COMPONENT: EQUIPMENT DETAILS POPUP ---
@st.dialog("Détails de l'équipement", width="large")
def show_equipment_dialog(item, user_scope, db):
    emoji, w_text = get_warranty_status(item["fin_garantie"])

    c_title, c_status = st.columns([3, 1])
    with c_title:
        st.header(f"{item['poste']} · {item['category']}")
        st.caption(f"{item['marque'] or ''} {item['modele'] or ''} | S/N: {item['numero_serie'] or '-'}")
    with c_status:
        st.metric("État", f"{STATUS_EMOJI.get(item['etat'], '')} {item['etat']}")
        st.caption(f"{emoji} {w_text}")

    d_tab1, d_tab2, d_tab3, d_tab4, d_tab5 = st.tabs(["ℹ️ Infos", "🔧 Maintenance", "📷 Scans", "📸 Photos", "🏷️ QR Code"])

    with d_tab1:
        if can_write(user_scope):
            with st.form(f"edit_{item['id']}"):
                data = equipment_form(f"edit_{item['id']}", db.get_all_locations(), initial=item)
                if st.form_submit_button("💾 Enregistrer", type="primary"):
                    errors = validate_form(data)
                    if errors:
                        st.error(", ".join(errors))
                    elif db.update_equipment(item["id"], data, st.session_state.username):
                        st.success("Équipement mis à jour"); time.sleep(1); st.rerun()
                    else:
                        st.error("Échec de la mise à jour")
        else:
            details = {label: item.get(field) for field, label in config.EXPORT_COLUMNS if field != "id"}
            details["Emplacement"] = item.get("location_name") or "Non assigné"
            st.table(pd.DataFrame([details]).T.rename(columns={0: ""}))

    with d_tab2:
        if can_write(user_scope):
            with st.form(f"maint_{item['id']}"):
                desc = st.text_area("Intervention")
                new_etat = st.selectbox("Nouvel état", [None] + config.STATUSES, format_func=lambda s: s or "Inchangé")
                if st.form_submit_button("Ajouter"):
                    if db.add_maintenance_log(item["id"], st.session_state.username, desc, new_etat):
                        st.success("Intervention enregistrée"); st.rerun()
                    else:
                        st.error("Description obligatoire")
        logs = db.get_maintenance_logs(item["id"])
        if logs:
            st.dataframe(pd.DataFrame(logs), use_container_width=True, hide_index=True)
        else:
            st.info("Aucune intervention.")

    with d_tab3:
        scans = db.get_scan_history(item["id"])
        if scans:
            st.dataframe(pd.DataFrame(scans), use_container_width=True, hide_index=True)
        else:
            st.info("Jamais scanné.")

    with d_tab4:
        st.write("**Photos de l'équipement**")
        if can_write(user_scope):
            uploaded_file = st.file_uploader("Ajouter une photo", type=[e.lstrip(".") for e in config.PHOTO_EXTENSIONS], key=f"up_{item['id']}")
            if uploaded_file:
                if st.button("Enregistrer la photo", key=f"save_{item['id']}"):
                    try:
                        photos.save_photo(item["id"], uploaded_file.name, uploaded_file.getvalue())
                    except ValueError as e:
                        st.error(str(e))
                    else:
                        st.success("Photo ajoutée"); time.sleep(1); st.rerun()
            st.divider()

        names = photos.list_photos(item["id"])
        if names:
            cols = st.columns(3)
            for i, name in enumerate(names):
                with cols[i % 3]:
                    st.image(photos.photo_path(item["id"], name), use_container_width=True)
                    if can_write(user_scope) and st.button("🗑️", key=f"delphoto_{item['id']}_{name}"):
                        photos.delete_photo(item["id"], name)
                        st.rerun()
        else:
            st.info("Aucune photo.")

    with d_tab5:
        c_qr, c_del = st.columns([1, 2])
        png = qr_utils.qr_png_bytes(item["qr_code"] or qr_utils.build_qr_payload(item["id"]))
        with c_qr:
            st.image(png, width=150)
        with c_del:
            st.download_button("⬇ Image QR", data=png, file_name=f"qr_{item['poste']}.png", mime="image/png")
            if can_write(user_scope):
                st.write("")
                if st.button("🗑️ Supprimer", key=f"del_{item['id']}", type="secondary"):
                    if db.delete_equipment(item["id"], st.session_state.username):
                        photos.delete_all_photos(item["id"])
                    st.rerun()


# --- VIEW 1: DASHBOARD ---
def show_dashboard(db, user_scope):
    st.title("📊 Tableau de bord")
    stats = db.get_stats()

    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Équipements", stats["total"])
    c2.metric("En panne", stats["by_status"].get(config.STATUS_BROKEN, 0))
    c3.metric("Hors service", stats["by_status"].get(config.STATUS_RETIRED, 0))
    c4.metric("Garanties < 90 j", stats["warranty_expiring"])
    st.markdown("---")

    t1, t2 = st.tabs(["📈 Statistiques", "📋 Inventaire"])

    with t1:
        if stats["total"]:
            c_chart1, c_chart2 = st.columns([2, 1])
            with c_chart1:
                df_cat = pd.DataFrame(list(stats["by_category"].items()), columns=["Catégorie", "Nombre"])
                fig_bar = px.bar(df_cat.sort_values("Nombre"), x="Nombre", y="Catégorie", orientation="h", title="Par catégorie")
                st.plotly_chart(fig_bar, use_container_width=True)
            with c_chart2:
                df_status = pd.DataFrame(list(stats["by_status"].items()), columns=["État", "Nombre"])
                fig_pie = px.pie(df_status, names="État", values="Nombre", hole=0.4, title="État",
                                 color="État", color_discrete_map={"OK": "green", "Panne": "orange", "HS": "red"})
                st.plotly_chart(fig_pie, use_container_width=True)
        else:
            st.info("Aucune donnée.")

    with t2:
        locations = db.get_all_locations()
        loc_names = {loc["id"]: loc["name"] for loc in locations}
        c_search, c_cat, c_etat, c_loc = st.columns([2, 1, 1, 1])
        search = c_search.text_input("🔍 Recherche", placeholder="Poste, marque, n° série...")
        cat_f = c_cat.selectbox("Catégorie", [ALL_FILTER] + config.CATEGORIES)
        etat_f = c_etat.selectbox("État", [ALL_FILTER] + config.STATUSES)
        loc_f = c_loc.selectbox("Emplacement", [None] + list(loc_names), format_func=lambda i: loc_names.get(i, ALL_FILTER))

        PAGE_SIZE = 50
        if 'page' not in st.session_state: st.session_state.page = 0

        filters = dict(category=cat_f, etat=etat_f, location_id=loc_f, search_query=search or None)
        items, count_filtered = db.get_all_equipment(limit=PAGE_SIZE, offset=st.session_state.page * PAGE_SIZE, **filters)

        all_items, _ = db.get_all_equipment(**filters)
        st.download_button("⬇ Exporter CSV", data=csv_utils.to_csv_bytes(csv_utils.export_equipment_csv(all_items)),
                           file_name=csv_utils.export_filename(), mime="text/csv")

        if items:
            df = pd.DataFrame(items)
            df.insert(0, "Statut", df["etat"].map(STATUS_EMOJI))
            shown = ["Statut", "poste", "category", "marque", "modele", "numero_serie", "etat", "location_name", "fin_garantie"]
            event = st.dataframe(df[shown], on_select="rerun", selection_mode="multi-row", use_container_width=True, hide_index=True)

            p1, p2, p3 = st.columns([1, 8, 1])
            if st.session_state.page > 0:
                if p1.button("◀ Préc."): st.session_state.page -= 1; st.rerun()
            if (st.session_state.page + 1) * PAGE_SIZE < count_filtered:
                if p3.button("Suiv. ▶"): st.session_state.page += 1; st.rerun()
            p2.caption(f"Page {st.session_state.page + 1} sur {max(1, (count_filtered - 1) // PAGE_SIZE + 1)}")

            rows = event.selection.rows
            if len(rows) == 1:
                show_equipment_dialog(items[rows[0]], user_scope, db)
            elif len(rows) > 1:
                subset = [items[i] for i in rows]
                st.info(f"✅ **{len(rows)} équipements sélectionnés**")
                b1, b2 = st.columns(2)
                if b1.button("🖨️ Planche d'étiquettes QR (PDF)"):
                    st.download_button("⬇ Télécharger la planche", data=qr_utils.generate_qr_sheet(subset),
                                       file_name="etiquettes_qr.pdf", mime="application/pdf")
                if can_write(user_scope) and b2.button("🗑️ Supprimer la sélection"):
                    result = db.batch_delete([i["id"] for i in subset], st.session_state.username)
                    for i in subset:
                        if db.get_equipment_by_id(i["id"]) is None:
                            photos.delete_all_photos(i["id"])
                    st.success(f"{result.success} équipement(s) supprimé(s)"); time.sleep(1); st.rerun()
        else:
            st.warning("Aucun résultat.")


# --- VIEW 2: ADD EQUIPMENT ---
def show_add_equipment(db, user_scope):
    st.title("➕ Ajouter du matériel")
    if not can_write(user_scope):
        st.error("🔒 Accès restreint"); return

    tab1, tab2 = st.tabs(["📝 Saisie", "📂 Import CSV"])

    with tab1:
        st.caption("Les champs marqués * sont obligatoires.")
        data = equipment_form("new", db.get_all_locations())
        if st.button("Enregistrer", type="primary", use_container_width=True):
            errors = validate_form(data)
            if errors:
                st.error(", ".join(errors))
            else:
                eid = db.add_equipment(data, st.session_state.username)
                if eid:
                    notify_equipment_added(eid)
                    st.success("Équipement ajouté !"); time.sleep(1); st.rerun()
                else:
                    st.error("Échec de l'enregistrement.")

    with tab2:
        up = st.file_uploader("Fichier CSV", type="csv")
        st.info("Séparateur virgule ou point-virgule. Colonne « Poste » obligatoire ; "
                "les exports de formulaire (« Numéro attribué au poste », ...) sont reconnus.")
        if up:
            parsed = csv_utils.parse_csv(csv_utils.read_uploaded_csv(up.getvalue()))
            st.write(f"**{len(parsed.records)}** ligne(s) valide(s), **{parsed.skipped}** ignorée(s) (poste manquant)")
            if parsed.records:
                st.dataframe(pd.DataFrame(parsed.records), use_container_width=True, hide_index=True)
                if st.button("Importer", type="primary"):
                    with st.spinner("Enregistrement en base de données..."):
                        result = db.batch_import(parsed.records, st.session_state.username)
                    if result.failed == 0:
                        st.success(f"Import réussi : {result.success} équipement(s) importé(s)")
                    elif result.success > 0:
                        st.warning(f"Import partiel : {result.success} réussi(s), {result.failed} en erreur")
                    else:
                        st.error("Échec de l'import : aucun équipement importé")
                    for err in result.errors:
                        st.caption(err)
            else:
                st.warning("Aucune donnée valide trouvée dans le fichier CSV")


# --- VIEW 3: SCAN ---
def show_scan(db, user_scope):
    st.title("📷 Scan")
    if 'scanned_session' not in st.session_state: st.session_state.scanned_session = []
    is_admin = user_scope == config.SCOPE_ADMIN

    def on_scan(scan_code):
        equipment_id = qr_utils.equipment_id_from_scan(scan_code)
        if not equipment_id:
            return
        item = db.get_equipment_by_id(equipment_id)
        ts = datetime.now().strftime("%H:%M:%S")
        if item:
            status = scan_status(can_write(user_scope) and db.add_scan(equipment_id, st.session_state.username, item["location_id"], is_admin),
                                 can_write(user_scope))
            st.session_state.scanned_session.insert(0, {"Heure": ts, "Poste": item["poste"], "Catégorie": item["category"], "Statut": status})
            st.toast(f"Scanné ✓ {item['poste']}")
        else:
            st.session_state.scanned_session.insert(0, {"Heure": ts, "Poste": equipment_id, "Catégorie": "", "Statut": "❌ Inconnu"})
            st.toast(f"Code inconnu : {equipment_id}")

    c_input, c_report = st.columns([2, 1])
    with c_input:
        st.write("👉 **Douchette USB**")

        def text_callback():
            on_scan(st.session_state.usb_input)
            st.session_state.usb_input = ""

        st.text_input("Saisie douchette", key="usb_input", on_change=text_callback, label_visibility="collapsed")

        st.write("👉 **Caméra**")
        cam = st.camera_input("Scanner un QR code / code-barres")
        if cam:
            codes = decode_camera_image(cam.getvalue())
            for code in codes:
                st.success(f"Détecté : {code}")
                if st.button(f"Valider {code}", key=f"proc_{code}"):
                    on_scan(code)
                    st.rerun()
            if not codes:
                st.caption("Aucun code détecté dans l'image.")

        st.write("---")
        st.subheader("Journal de session")
        if st.session_state.scanned_session:
            st.dataframe(pd.DataFrame(st.session_state.scanned_session), use_container_width=True, hide_index=True)
            if st.button("Vider le journal"): st.session_state.scanned_session = []; st.rerun()

    with c_report:
        st.info("📊 **Rapport de session**")
        if st.session_state.scanned_session:
            df_log = pd.DataFrame(st.session_state.scanned_session)
            r1, r2 = st.columns(2)
            r1.metric("Scans", len(df_log))
            r2.metric("Inconnus", len(df_log[df_log["Statut"] == "❌ Inconnu"]))
            st.download_button("⬇ Rapport (CSV)", data=csv_utils.to_csv_bytes(df_log.to_csv(index=False)),
                               file_name=f"scan_{datetime.now().strftime('%Y%m%d_%H%M')}.csv", mime="text/csv", type="primary")
        else:
            st.caption("Scannez du matériel pour générer un rapport.")


# --- VIEW 4: ROOM AUDIT ---
def show_room_audit(db, user_scope):
    st.title("🏫 Audit de salle")
    locations = db.get_all_locations()
    if not locations:
        st.warning("Aucun emplacement défini. Créez-en un dans l'administration."); return
    loc_names = {loc["id"]: loc["name"] for loc in locations}

    selected = st.selectbox("Emplacement", list(loc_names), format_func=loc_names.get)
    audit = st.session_state.get("audit_session")

    b1, b2 = st.columns(2)
    if b1.button("▶ Démarrer l'audit", type="primary"):
        st.session_state.audit_session = AuditSession(selected)
        st.session_state.audit_result = None
        st.rerun()

    if audit is None:
        st.caption("Choisissez une salle puis démarrez l'audit."); return

    st.write(f"Audit en cours : **{loc_names.get(audit.location_id, '?')}** · {len(audit)} équipement(s) scanné(s)")

    def audit_callback():
        new_id = audit.record(st.session_state.audit_input)
        if new_id: st.toast(f"Scanné ✓ {new_id}")
        st.session_state.audit_input = ""

    st.text_input("Douchette", key="audit_input", on_change=audit_callback)
    cam = st.camera_input("Caméra", key="audit_cam")
    if cam:
        for code in decode_camera_image(cam.getvalue()):
            if audit.record(code): st.toast(f"Scanné ✓ {code}")

    if b2.button("⏹ Terminer l'audit"):
        equipment, _ = db.get_all_equipment()
        result = audit.reconcile(equipment)
        st.session_state.audit_result = result
        db.log_action(st.session_state.username, "ROOM_AUDIT",
                      f"{loc_names.get(audit.location_id)}: {len(result.found)} trouvé(s), "
                      f"{len(result.missing)} manquant(s), {len(result.displaced)} déplacé(s)")

    result = st.session_state.get("audit_result")
    if result:
        r1, r2, r3 = st.columns(3)
        r1.metric(config.AUDIT_FOUND + "s", len(result.found))
        r2.metric(config.AUDIT_MISSING + "s", len(result.missing))
        r3.metric(config.AUDIT_DISPLACED + "s", len(result.displaced))
        for label, items in ((config.AUDIT_MISSING, result.missing), (config.AUDIT_DISPLACED, result.displaced)):
            if items:
                st.subheader(label)
                st.dataframe(pd.DataFrame(items)[["poste", "category", "location_name"]], use_container_width=True, hide_index=True)
        if result.unknown:
            st.caption(f"Codes inconnus : {', '.join(result.unknown)}")

        report = export_audit_csv(result, loc_names.get(audit.location_id, ""), loc_names)
        st.download_button("⬇ Exporter l'audit", data=csv_utils.to_csv_bytes(report),
                           file_name=csv_utils.export_filename(f"audit_{loc_names.get(audit.location_id, '')}"), mime="text/csv")

# --- VIEW 5: ADMIN ---
def show_admin(db, user_scope):
    st.title("🛡️ Administration")
    if user_scope != config.SCOPE_ADMIN: st.error("Refusé : accès administrateur requis"); return

    t1, t2, t3, t4 = st.tabs(["👥 Utilisateurs", "🏫 Emplacements", "📜 Journal", "✏️ Édition en masse"])

    with t1:
        u_tab1, u_tab2 = st.tabs(["Créer", "Gérer"])
        with u_tab1:
            with st.form("new_u"):
                c1, c2, c3 = st.columns(3)
                u = c1.text_input("Identifiant")
                p = c2.text_input("Mot de passe", type="password")
                r = c3.selectbox("Rôle", config.ALL_SCOPES)
                if st.form_submit_button("Créer"):
                    if u and p:
                        role = "Admin" if r == config.SCOPE_ADMIN else "User"
                        if db.add_user(u, p, role, r):
                            db.log_action(st.session_state.username, "USER_CREATE", f"{u} ({r})")
                            st.success(f"Utilisateur « {u} » créé"); time.sleep(1); st.rerun()
                        else: st.error("Identifiant déjà utilisé.")

        with u_tab2:
            user_map = {f"{usr[1]} ({usr[3]})": usr for usr in db.get_all_users()}
            selected_label = st.selectbox("Utilisateur", [""] + list(user_map.keys()))
            if selected_label:
                uid, uname, urole, uscope = user_map[selected_label]
                c_scope, c_pass, c_del = st.columns(3)
                with c_scope:
                    new_scope_val = st.selectbox("Nouveau rôle", config.ALL_SCOPES, key=f"s_{uid}")
                    if st.button("Changer le rôle", key=f"btn_s_{uid}"):
                        db.update_user_scope(uid, new_scope_val)
                        db.log_action(st.session_state.username, "USER_SCOPE", f"{uname} -> {new_scope_val}")
                        st.success("Mis à jour !"); st.rerun()
                with c_pass:
                    new_pass_val = st.text_input("Nouveau mot de passe", type="password", key=f"p_{uid}")
                    if st.button("Changer le mot de passe", key=f"btn_p_{uid}"):
                        if new_pass_val: db.update_user_password(uid, new_pass_val); st.success("Mis à jour !")
                with c_del:
                    st.write("Zone dangereuse")
                    if st.button("🗑️ Supprimer", key=f"del_u_{uid}", type="primary"):
                        if uname == st.session_state.username: st.error("Impossible de vous supprimer vous-même.")
                        else:
                            db.delete_user(uid)
                            db.log_action(st.session_state.username, "USER_DELETE", uname)
                            st.success(f"{uname} supprimé"); st.rerun()

    with t2:
        with st.form("new_loc"):
            c1, c2 = st.columns(2)
            name = c1.text_input("Nom")
            desc = c2.text_input("Description")
            if st.form_submit_button("Ajouter"):
                if db.add_location(name, desc): st.success("Emplacement ajouté"); st.rerun()
                else: st.error("Nom vide ou déjà utilisé.")
        locations = db.get_all_locations()
        if locations:
            st.dataframe(pd.DataFrame(locations), use_container_width=True, hide_index=True)
            loc_names = {loc["id"]: loc["name"] for loc in locations}
            to_delete = st.selectbox("Supprimer un emplacement", [None] + list(loc_names), format_func=lambda i: loc_names.get(i, ""))
            if to_delete and st.button("🗑️ Supprimer l'emplacement"):
                db.delete_location(to_delete); st.rerun()

    with t3:
        logs = db.get_system_logs()
        if logs:
            df = pd.DataFrame(logs)
            st.dataframe(df, use_container_width=True, hide_index=True)
            fig = px.scatter(df, x="Timestamp", y="Action", color="User")
            st.plotly_chart(fig, use_container_width=True)
        else: st.info("Journal vide.")

    with t4:
        st.info("⚠️ Modification directe de la base. Les cellules vides ne remplacent pas les valeurs existantes.")
        items, _ = db.get_all_equipment()
        if items:
            editable = ["id", "poste", "category", "marque", "modele", "numero_serie", "etat", "date_achat", "fin_garantie", "notes"]
            df_edit = pd.DataFrame(items)[editable]
            edited_df = st.data_editor(df_edit, key="edit_bulk", disabled=["id"], num_rows="fixed", use_container_width=True,
                                       column_config={"category": st.column_config.SelectboxColumn(options=config.CATEGORIES),
                                                      "etat": st.column_config.SelectboxColumn(options=config.STATUSES)})

            if st.button("💾 Enregistrer les modifications", type="primary"):
                p_bar = st.progress(0)
                total_rows = len(edited_df)
                errors = 0
                for i, (_, r) in enumerate(edited_df.iterrows()):
                    row_dict = {k: (None if pd.isna(v) else v) for k, v in r.to_dict().items()}
                    for f in ("date_achat", "fin_garantie"):
                        row_dict[f] = csv_utils.normalize_date(row_dict[f])
                    if not db.update_equipment(row_dict.pop("id"), row_dict, st.session_state.username): errors += 1
                    p_bar.progress((i + 1) / total_rows)
                if errors == 0: st.success("Base mise à jour !")
                else: st.warning(f"Mise à jour avec {errors} erreur(s).")
                time.sleep(1); st.rerun()
