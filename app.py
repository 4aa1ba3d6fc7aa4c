import streamlit as st

from core.auth import login_screen, register_screen
from core.config import configure_logging
from core.permissions import has_permission
from core.session import get_session

from dashboards.home import close_dashboard, render_home
import dashboards.profile as dash_profile

import admin.dashboard as admin_dash


# ---------------------------------------------------
# CONFIG GERAL DO APP
# ---------------------------------------------------
st.set_page_config(
    page_title="Portal BI",
    page_icon="📊",
    layout="wide",
    initial_sidebar_state="expanded",
)

configure_logging()

# ---------------------------------------------------
# AUTENTICAÇÃO
# ---------------------------------------------------
session = get_session()

if not session.is_authenticated:
    # login ou cadastro, e para aqui
    if st.session_state.get("auth_page") == "register":
        register_screen(session)
    else:
        login_screen(session)
    st.stop()

profile = session.get_current_profile()
nome = profile.full_name if profile and profile.full_name else session.user.email

st.sidebar.markdown(f"**Usuário:** `{nome}`")
if session.is_admin:
    st.sidebar.caption("🛡 Administrador")

if not session.snapshot.profile_loaded:
    st.sidebar.warning("Perfil não carregado.")
    if st.sidebar.button("Recarregar perfil"):
        session.refresh()
        st.rerun()


# ---------------------------------------------------
# DEFINIÇÃO DAS PÁGINAS
# ---------------------------------------------------
pages = {}

pages["📊 Dashboards"] = lambda: render_home(session)
pages["👤 Meu Perfil"] = lambda: dash_profile.render(session)

if has_permission(session, "manage_users"):
    pages["🛠 Painel Admin"] = lambda: admin_dash.render(session)


# ---------------------------------------------------
# MENU LATERAL
# ---------------------------------------------------
st.sidebar.markdown("---")
st.sidebar.markdown("### 📌 Navegação")

opcao = st.sidebar.radio("Selecione a página:", list(pages.keys()), on_change=close_dashboard)

# Botão de logout
if st.sidebar.button("Sair"):
    session.sign_out()
    close_dashboard()
    st.rerun()

# Render da página escolhida
pages[opcao]()
