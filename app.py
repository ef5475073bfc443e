import streamlit as st
from database import Database
from logging_setup import configure_logging
import views
import config

# Page Configuration
st.set_page_config(
    page_title=config.APP_NAME,
    page_icon="🖥️",
    layout="wide",
    initial_sidebar_state="expanded"
)

configure_logging()


@st.cache_resource
def get_database():
    return Database()


db = get_database()

# --- SESSION STATE MANAGEMENT ---
if 'page' not in st.session_state: st.session_state.page = 0
if 'logged_in' not in st.session_state: st.session_state.logged_in = False
if 'user_scope' not in st.session_state: st.session_state.user_scope = None
if 'username' not in st.session_state: st.session_state.username = None
if 'dark_mode' not in st.session_state: st.session_state.dark_mode = False


# --- DYNAMIC THEME STYLING ---
def get_css(is_dark):
    if is_dark:
        bg_color, sidebar_bg, text_color = "#0e1117", "#262730", "#ffffff"
        metric_bg, metric_border = "#1e1e1e", "#606060"
    else:
        bg_color, sidebar_bg, text_color = "#ffffff", "#f0f2f6", "#000000"
        metric_bg, metric_border = "#ffffff", "#dcdcdc"

    return f"""
        <style>
            .stApp {{ background-color: {bg_color}; color: {text_color}; }}
            section[data-testid="stSidebar"] {{ background-color: {sidebar_bg}; border-right: 1px solid {metric_border}; }}
            div[data-testid="stMetric"] {{ background-color: {metric_bg}; border: 1px solid {metric_border}; border-radius: 5px; padding: 5px 10px; }}
            div[data-testid="stMetric"] label {{ color: {text_color} !important; }}
            h1, h2, h3, h4, h5, h6 {{ color: {text_color} !important; }}
            footer {{visibility: hidden;}}
        </style>
    """


def apply_theme(is_dark):
    st.markdown(get_css(is_dark), unsafe_allow_html=True)


# --- AUTHENTICATION FLOW ---
if not st.session_state.logged_in:
    apply_theme(False)
    col1, col2, col3 = st.columns([1, 1, 1])
    with col2:
        st.header(f"{config.APP_NAME} · Connexion")
        username = st.text_input("Identifiant")
        password = st.text_input("Mot de passe", type="password")

        if st.button("Se connecter", type="primary", use_container_width=True):
            user = db.verify_user(username, password)
            if user:
                st.session_state.logged_in = True
                st.session_state.username = user[1]
                st.session_state.user_scope = user[3]
                db.log_action(user[1], "LOGIN")
                st.rerun()
            else:
                st.error("Identifiants invalides")
else:
    # --- MAIN APP LAYOUT ---
    st.sidebar.title(f"🖥️ {config.APP_NAME}")
    st.sidebar.caption(f"Version {config.APP_VERSION}")
    st.sidebar.info(f"Utilisateur : **{st.session_state.username}**\nRôle : **{st.session_state.user_scope}**")
    st.sidebar.divider()

    def toggle_theme(): st.session_state.dark_mode = not st.session_state.dark_mode
    st.sidebar.toggle("🌙 Mode sombre", value=st.session_state.dark_mode, on_change=toggle_theme)
    apply_theme(st.session_state.dark_mode)

    pages = {
        "Tableau de bord": views.show_dashboard,
        "Ajouter": views.show_add_equipment,
        "Scan": views.show_scan,
        "Audit de salle": views.show_room_audit,
    }
    if st.session_state.user_scope == config.SCOPE_ADMIN: pages["Administration"] = views.show_admin

    choice = st.sidebar.radio("Navigation", list(pages))
    st.sidebar.markdown("---")

    if st.sidebar.button("Déconnexion", type="secondary"):
        st.session_state.logged_in = False
        st.session_state.user_scope = None
        st.session_state.pop("audit_session", None)
        st.rerun()

    pages[choice](db, st.session_state.user_scope)
