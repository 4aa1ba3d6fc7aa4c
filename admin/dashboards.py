# admin/dashboards.py
# ============================================================
# Gestão de painéis (Power BI embutido) e seus workspaces
# ============================================================

import pandas as pd
import streamlit as st
from pydantic import ValidationError

from core import db
from core.config import get_settings
from core.models import Dashboard

EDIT_KEY = "edit_dashboard"


def _validation_message(err: ValidationError) -> str:
    campos = {e["loc"][0] for e in err.errors() if e.get("loc")}
    if "embed_url" in campos:
        return "URL inválida. Por favor, insira uma URL válida."
    return "Campos obrigatórios: preencha o nome e a URL do painel."


def render(session):
    st.title("🧩 Painéis")
    st.caption("Cadastre os relatórios embutidos e os workspaces onde aparecem.")

    st.markdown("---")

    try:
        dashboards = db.list_dashboards(session.client)
        workspaces = db.list_workspaces(session.client)
    except db.PortalDataError:
        st.error("Erro ao carregar dados")
        return

    if dashboards:
        df = pd.DataFrame(
            [
                {
                    "Nome": d.name,
                    "Descrição": d.description or "—",
                    "URL": d.embed_url,
                    "Tabela do filtro": d.filter_table or get_settings().filter_table,
                    "Workspaces": ", ".join(w.name for w in d.workspaces),
                }
                for d in dashboards
            ]
        )
        st.dataframe(df, hide_index=True, use_container_width=True)
    else:
        st.info("Nenhum painel cadastrado ainda.")

    por_id = {d.id: d for d in dashboards}
    escolha = st.selectbox(
        "Painel",
        [None] + list(por_id.keys()),
        format_func=lambda did: "➕ Novo painel" if did is None else por_id[did].name,
        key=EDIT_KEY,
    )
    editing = por_id.get(escolha)

    ws_nomes = {w.id: w.name for w in workspaces}
    atuais = [w.id for w in editing.workspaces if w.id in ws_nomes] if editing else []

    with st.form(f"form_dashboard_{escolha or 'novo'}"):
        name = st.text_input("Nome", value=editing.name if editing else "")
        description = st.text_area("Descrição", value=(editing.description or "") if editing else "")
        embed_url = st.text_input(
            "URL de incorporação",
            value=editing.embed_url if editing else "",
            placeholder="https://app.powerbi.com/reportEmbed?reportId=...",
        )
        filter_table = st.text_input(
            "Tabela do filtro (opcional)",
            value=(editing.filter_table or "") if editing else "",
            placeholder=get_settings().filter_table,
        )
        workspace_ids = st.multiselect(
            "Workspaces",
            list(ws_nomes.keys()),
            default=atuais,
            format_func=lambda wid: ws_nomes[wid],
        )
        salvar = st.form_submit_button("Salvar" if editing else "Criar", use_container_width=True)

    if salvar:
        try:
            dashboard = Dashboard(
                name=name,
                description=description,
                embed_url=embed_url,
                filter_table=filter_table,
            )
        except ValidationError as e:
            st.error(_validation_message(e))
            return

        try:
            if editing:
                db.update_dashboard(session.client, editing.id, dashboard, workspace_ids)
                st.success("Painel atualizado. As alterações foram salvas com sucesso.")
            else:
                db.create_dashboard(session.client, dashboard, workspace_ids, created_by=session.user.id)
                st.success("Painel criado com sucesso.")
        except db.PortalDataError:
            st.error("Erro ao salvar painel. Tente novamente mais tarde.")
            return
        st.rerun()

    if editing:
        st.markdown("---")
        st.warning(f'Esta ação não pode ser desfeita. O painel "{editing.name}" será excluído permanentemente.')
        confirmar = st.checkbox("Confirmo a exclusão", key=f"del_dash_{editing.id}")
        if st.button("🗑 Excluir painel", disabled=not confirmar):
            try:
                db.delete_dashboard(session.client, editing.id)
            except db.PortalDataError:
                st.error("Erro ao excluir painel.")
                return
            st.session_state.pop(EDIT_KEY, None)
            st.success("Painel excluído")
            st.rerun()
