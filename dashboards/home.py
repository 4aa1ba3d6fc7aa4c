import streamlit as st

from core import db
from dashboards import view

SELECTED_DASHBOARD = "dashboard_id"
SELECTED_WORKSPACE = "workspace_id"


def open_dashboard(dashboard_id: str):
    st.session_state[SELECTED_DASHBOARD] = dashboard_id


def close_dashboard():
    st.session_state.pop(SELECTED_DASHBOARD, None)
    st.session_state.pop("dashboard_fullscreen", None)


def toggle_workspace(workspace_id: str):
    if st.session_state.get(SELECTED_WORKSPACE) == workspace_id:
        st.session_state.pop(SELECTED_WORKSPACE, None)
    else:
        st.session_state[SELECTED_WORKSPACE] = workspace_id


def _plural_paineis(n: int) -> str:
    return f"{n} painel" if n == 1 else f"{n} painéis"


def _dashboard_cards(dashboards, key_prefix: str):
    cols = st.columns(3)
    for i, d in enumerate(dashboards):
        with cols[i % 3]:
            with st.container(border=True):
                st.markdown(f"**📊 {d.name}**")
                if d.description:
                    st.caption(d.description)
                if d.workspaces:
                    st.caption(" · ".join(w.name for w in d.workspaces))
                st.button(
                    "Abrir",
                    key=f"{key_prefix}_{d.id}",
                    on_click=open_dashboard,
                    args=(d.id,),
                    use_container_width=True,
                )


def render_home(session):
    # painel aberto → tela do iframe
    if st.session_state.get(SELECTED_DASHBOARD):
        view.render(session, st.session_state[SELECTED_DASHBOARD], on_back=close_dashboard)
        return

    st.title("📊 Meus Dashboards")
    st.caption("Visualize seus painéis de Business Intelligence")

    try:
        workspaces = db.list_workspaces(session.client)
        dashboards = db.list_dashboards(session.client)
    except db.PortalDataError as e:
        st.error(f"Erro ao carregar dados: {e}")
        return

    aba_ws, aba_todos = st.tabs(["🗂 Workspaces", "🧩 Todos os Painéis"])

    with aba_ws:
        if not workspaces:
            st.info(
                "Nenhum workspace disponível. Crie um workspace para organizar seus dashboards."
                if session.is_admin
                else "Nenhum workspace disponível. Você ainda não foi adicionado a nenhum workspace."
            )
        else:
            selected = st.session_state.get(SELECTED_WORKSPACE)
            cols = st.columns(3)
            for i, ws in enumerate(workspaces):
                with cols[i % 3]:
                    with st.container(border=True):
                        marcador = "✅ " if ws.id == selected else "🗂 "
                        st.markdown(f"**{marcador}{ws.name}**")
                        if ws.description:
                            st.caption(ws.description)
                        st.caption(_plural_paineis(ws.dashboard_count))
                        st.button(
                            "Fechar" if ws.id == selected else "Ver painéis",
                            key=f"ws_{ws.id}",
                            on_click=toggle_workspace,
                            args=(ws.id,),
                            use_container_width=True,
                        )

            if selected:
                nome = next((w.name for w in workspaces if w.id == selected), "")
                st.markdown("---")
                st.subheader(f"Painéis em {nome}")
                filtrados = [d for d in dashboards if any(w.id == selected for w in d.workspaces)]
                if not filtrados:
                    st.info("Nenhum painel neste workspace. Este workspace ainda não possui painéis configurados.")
                else:
                    _dashboard_cards(filtrados, "ws_dash")

    with aba_todos:
        if not dashboards:
            st.info(
                "Nenhum painel disponível. Adicione seu primeiro painel Power BI."
                if session.is_admin
                else "Nenhum painel disponível. Você ainda não tem acesso a nenhum painel."
            )
        else:
            _dashboard_cards(dashboards, "all_dash")
