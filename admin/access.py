# admin/access.py
# ============================================================
# Perfis de acesso — nível de filtragem dos dashboards
# ============================================================

import pandas as pd
import streamlit as st
from pydantic import ValidationError

from core import db
from core.models import AccessProfile, FilterLevel

EDIT_KEY = "edit_access_profile"


def _save(session, editing, name, description, filter_level):
    try:
        profile = AccessProfile(name=name, description=description, filter_level=filter_level)
    except ValidationError:
        st.error("Informe o nome do perfil.")
        return False

    try:
        if editing:
            db.update_access_profile(session.client, editing.id, profile)
            st.success("Perfil de acesso atualizado")
        else:
            db.create_access_profile(session.client, profile)
            st.success("Perfil de acesso criado")
    except db.DuplicateKeyError:
        st.error("Erro ao salvar perfil: já existe um perfil com esse nome.")
        return False
    except db.PortalDataError:
        st.error("Erro ao salvar perfil. Tente novamente.")
        return False
    return True


def render(session):
    st.title("🛡 Perfis de Acesso")
    st.caption("Gerencie os perfis que definem o nível de filtragem dos dashboards")

    st.markdown("---")

    # ===============================
    # Carregar perfis
    # ===============================
    try:
        perfis = db.list_access_profiles(session.client)
    except db.PortalDataError:
        st.error("Erro ao carregar perfis de acesso")
        return

    if perfis:
        df = pd.DataFrame(
            [
                {
                    "Nome": p.name,
                    "Descrição": p.description or "—",
                    "Nível de Filtro": p.filter_level.label,
                }
                for p in perfis
            ]
        )
        st.dataframe(df, hide_index=True, use_container_width=True)
    else:
        st.info("Nenhum perfil de acesso criado ainda.")

    # ===============================
    # Formulário (novo / edição)
    # ===============================
    por_id = {p.id: p for p in perfis}
    opcoes = [None] + list(por_id.keys())
    escolha = st.selectbox(
        "Perfil",
        opcoes,
        format_func=lambda pid: "➕ Novo perfil" if pid is None else por_id[pid].name,
        key=EDIT_KEY,
    )
    editing = por_id.get(escolha)

    niveis = list(FilterLevel)
    with st.form(f"form_access_{escolha or 'novo'}"):
        name = st.text_input(
            "Nome",
            value=editing.name if editing else "",
            placeholder="Ex: Diretoria, Engenheiro, Gerente",
        )
        description = st.text_area(
            "Descrição",
            value=(editing.description or "") if editing else "",
            placeholder="Descrição do perfil de acesso",
        )
        filter_level = st.selectbox(
            "Nível de Filtro",
            niveis,
            index=niveis.index(editing.filter_level if editing else FilterLevel.OBRA),
            format_func=lambda lvl: lvl.label,
        )
        salvar = st.form_submit_button("Salvar" if editing else "Criar", use_container_width=True)

    if salvar and _save(session, editing, name, description, filter_level):
        st.rerun()

    # ===============================
    # Exclusão
    # ===============================
    if editing:
        confirmar = st.checkbox(f'Tenho certeza que desejo excluir o perfil "{editing.name}"')
        if st.button("🗑 Excluir perfil", disabled=not confirmar):
            try:
                db.delete_access_profile(session.client, editing.id)
            except db.PortalDataError:
                st.error("Erro ao excluir perfil")
                return
            st.session_state.pop(EDIT_KEY, None)
            st.success("Perfil de acesso excluído")
            st.rerun()
