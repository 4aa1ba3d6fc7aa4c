import streamlit as st

from admin import access, dashboards, users, workspaces
from core import db
from core.permissions import require_permission


def render(session):
    if not require_permission(session, "manage_users"):
        return

    st.title("🛠 Painel Administrativo — Portal BI")

    # =======================
    # MÉTRICAS RESUMO
    # =======================
    try:
        todos = db.list_users(session.client)
        n_workspaces = len(db.list_workspaces(session.client))
        n_paineis = len(db.list_dashboards(session.client))
    except db.PortalDataError:
        todos, n_workspaces, n_paineis = [], 0, 0

    col1, col2, col3 = st.columns(3)
    with col1:
        st.metric("Usuários Ativos", users.count_active_users(todos))
    with col2:
        st.metric("Workspaces", n_workspaces)
    with col3:
        st.metric("Painéis", n_paineis)

    st.markdown("---")

    # =======================
    # ABAS DO PAINEL ADMIN
    # =======================
    aba = st.tabs(
        [
            "👥 Usuários",
            "🗂 Workspaces",
            "🧩 Painéis",
            "🛡 Perfis de Acesso",
        ]
    )

    with aba[0]:
        users.render(session)

    with aba[1]:
        workspaces.render(session)

    with aba[2]:
        dashboards.render(session)

    with aba[3]:
        access.render(session)
