# admin/workspaces.py
# ============================================================
# Gestão de workspaces
# ============================================================

import pandas as pd
import streamlit as st
from pydantic import ValidationError

from core import db
from core.models import Workspace

EDIT_KEY = "edit_workspace"


def render(session):
    st.title("🗂 Workspaces")
    st.caption("Organize os painéis em grupos e controle quem vê cada um.")

    st.markdown("---")

    try:
        workspaces = db.list_workspaces(session.client)
    except db.PortalDataError:
        st.error("Erro ao carregar workspaces. Tente novamente mais tarde.")
        return

    if workspaces:
        df = pd.DataFrame(
            [
                {
                    "Nome": w.name,
                    "Descrição": w.description or "—",
                    "Painéis": w.dashboard_count,
                    "Criado em": w.created_at,
                }
                for w in workspaces
            ]
        )
        st.dataframe(df, hide_index=True, use_container_width=True)
    else:
        st.info("Nenhum workspace criado ainda.")

    por_id = {w.id: w for w in workspaces}
    escolha = st.selectbox(
        "Workspace",
        [None] + list(por_id.keys()),
        format_func=lambda wid: "➕ Novo workspace" if wid is None else por_id[wid].name,
        key=EDIT_KEY,
    )
    editing = por_id.get(escolha)

    with st.form(f"form_workspace_{escolha or 'novo'}"):
        name = st.text_input("Nome", value=editing.name if editing else "")
        description = st.text_area("Descrição", value=(editing.description or "") if editing else "")
        salvar = st.form_submit_button("Salvar" if editing else "Criar", use_container_width=True)

    if salvar:
        try:
            workspace = Workspace(name=name, description=description)
        except ValidationError:
            st.error("Campos obrigatórios: preencha o nome do workspace.")
            return

        try:
            if editing:
                db.update_workspace(session.client, editing.id, workspace)
            else:
                db.create_workspace(session.client, workspace, created_by=session.user.id)
        except db.PortalDataError:
            st.error("Erro ao salvar workspace. Tente novamente mais tarde.")
            return

        st.success("Workspace atualizado" if editing else "Workspace criado")
        st.rerun()

    if editing:
        st.markdown("---")
        st.warning(
            f'Esta ação não pode ser desfeita. O workspace "{editing.name}" será excluído permanentemente.'
        )
        confirmar = st.checkbox("Confirmo a exclusão", key=f"del_ws_{editing.id}")
        if st.button("🗑 Excluir workspace", disabled=not confirmar):
            try:
                db.delete_workspace(session.client, editing.id)
            except db.PortalDataError:
                st.error("Erro ao excluir workspace.")
                return
            st.session_state.pop(EDIT_KEY, None)
            st.success("Workspace excluído")
            st.rerun()
