# admin/users.py
# ============================================================
# Gestão de usuários: ativação, papel, workspaces e perfil de acesso
# ============================================================

import logging
from typing import List

import pandas as pd
import streamlit as st

from core import db
from core.models import AppRole, UserRow

logger = logging.getLogger(__name__)

SELECTED_USER = "selected_user_id"


# ============================================================
# FUNÇÕES AUXILIARES
# ============================================================

def count_active_users(users: List[UserRow]) -> int:
    return sum(1 for u in users if u.profile.is_active)


def count_inactive_users(users: List[UserRow]) -> int:
    return sum(1 for u in users if not u.profile.is_active)


def count_admins(users: List[UserRow]) -> int:
    return sum(1 for u in users if u.role is AppRole.ADMIN)


def search_users(users: List[UserRow], term: str) -> List[UserRow]:
    """Busca por nome ou email, sem diferenciar maiúsculas."""
    term = (term or "").strip().lower()
    if not term:
        return list(users)
    return [
        u for u in users
        if term in (u.profile.full_name or "").lower() or term in (u.profile.email or "").lower()
    ]


def is_self(session, user: UserRow) -> bool:
    return session.user is not None and user.profile.user_id == session.user.id


def _users_df(users: List[UserRow], access_names: dict) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                "Nome": u.profile.full_name,
                "Email": u.profile.email,
                "Papel": u.role.label,
                "Status": "Ativo" if u.profile.is_active else "Inativo",
                "Perfil de acesso": access_names.get(u.profile.access_profile_id, "—"),
                "Localização": " / ".join(x for x in (u.profile.estado, u.profile.cidade, u.profile.obra) if x) or "—",
                "Workspaces": ", ".join(w.name for w in u.workspaces) or "—",
            }
            for u in users
        ]
    )


# ============================================================
# AÇÕES
# ============================================================

def toggle_active(session, user: UserRow) -> bool:
    if is_self(session, user):
        st.error("Ação não permitida. Você não pode desativar sua própria conta.")
        return False
    try:
        db.set_profile_active(session.client, user.profile.user_id, not user.profile.is_active)
    except db.PortalDataError:
        st.error("Erro ao atualizar usuário. Tente novamente mais tarde.")
        return False

    acao = "desativado" if user.profile.is_active else "ativado"
    logger.info("Usuário %s %s por %s", user.profile.email, acao, session.user.email)
    st.success(f"{user.profile.full_name} foi {acao} com sucesso.")
    return True


def toggle_admin(session, user: UserRow) -> bool:
    if is_self(session, user):
        st.error("Ação não permitida. Você não pode alterar seu próprio papel.")
        return False

    new_role = AppRole.USER if user.role is AppRole.ADMIN else AppRole.ADMIN
    try:
        db.set_role(session.client, user.profile.user_id, new_role)
    except db.PortalDataError:
        st.error("Erro ao atualizar papel. Tente novamente mais tarde.")
        return False

    logger.info("Papel de %s alterado para %s", user.profile.email, new_role.value)
    st.success(f"{user.profile.full_name} agora é {new_role.label}.")
    return True


def add_to_workspace(session, user: UserRow, workspace_id: str, workspace_name: str) -> bool:
    try:
        db.add_user_to_workspace(session.client, user.profile.user_id, workspace_id)
    except db.DuplicateKeyError:
        st.error("Usuário já pertence a este workspace")
        return False
    except db.PortalDataError:
        st.error("Erro ao adicionar ao workspace. Tente novamente mais tarde.")
        return False

    st.success(f"{user.profile.full_name} foi adicionado a {workspace_name}.")
    return True


def remove_from_workspace(session, user: UserRow, workspace_id: str) -> bool:
    try:
        db.remove_user_from_workspace(session.client, user.profile.user_id, workspace_id)
    except db.PortalDataError:
        st.error("Erro ao remover do workspace")
        return False
    st.success("Usuário removido do workspace")
    return True


def assign_access_profile(session, user: UserRow, access_profile_id) -> bool:
    try:
        db.set_profile_access_profile(session.client, user.profile.user_id, access_profile_id)
    except db.PortalDataError:
        st.error("Erro ao atribuir perfil de acesso.")
        return False

    # o próprio admin mudou o perfil: recarrega o snapshot
    if is_self(session, user):
        session.refresh()
    st.success("Perfil de acesso atualizado.")
    return True


# ============================================================
# PÁGINA
# ============================================================

def render(session):
    st.title("👥 Usuários")
    st.caption("Gerencie contas, papéis, workspaces e perfis de acesso.")

    try:
        users = db.list_users(session.client)
        workspaces = db.list_workspaces(session.client)
        access_profiles = db.list_access_profiles(session.client)
    except db.PortalDataError:
        st.error("Erro ao carregar usuários. Tente novamente mais tarde.")
        return

    # ==============================
    # KPIs
    # ==============================
    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Total", len(users))
    c2.metric("🟢 Ativos", count_active_users(users))
    c3.metric("🔴 Inativos", count_inactive_users(users))
    c4.metric("🛡 Administradores", count_admins(users))

    st.markdown("---")

    termo = st.text_input("🔎 Buscar por nome ou email")
    filtrados = search_users(users, termo)

    access_names = {ap.id: ap.name for ap in access_profiles}
    if filtrados:
        st.dataframe(_users_df(filtrados, access_names), hide_index=True, use_container_width=True)
    else:
        st.info("Nenhum usuário encontrado.")
        return

    # ==============================
    # Edição do usuário selecionado
    # ==============================
    st.subheader("✏️ Editar usuário")
    por_id = {u.profile.user_id: u for u in filtrados}
    escolha = st.selectbox(
        "Usuário",
        list(por_id.keys()),
        format_func=lambda uid: f"{por_id[uid].profile.full_name} — ({por_id[uid].profile.email})",
        key=SELECTED_USER,
    )
    user = por_id[escolha]
    proprio = is_self(session, user)

    c1, c2 = st.columns(2)
    with c1:
        rotulo = "🚫 Desativar" if user.profile.is_active else "✅ Ativar"
        if st.button(rotulo, disabled=proprio, use_container_width=True):
            if toggle_active(session, user):
                st.rerun()
    with c2:
        rotulo = "⬇️ Tornar Usuário" if user.role is AppRole.ADMIN else "🛡 Tornar Administrador"
        if st.button(rotulo, disabled=proprio, use_container_width=True):
            if toggle_admin(session, user):
                st.rerun()

    # Perfil de acesso
    opcoes_ap = [None] + list(access_names.keys())
    atual = user.profile.access_profile_id if user.profile.access_profile_id in access_names else None
    novo_ap = st.selectbox(
        "Perfil de acesso",
        opcoes_ap,
        index=opcoes_ap.index(atual),
        format_func=lambda apid: "Nenhum (sem filtro)" if apid is None else access_names[apid],
        key=f"ap_{user.profile.user_id}",
    )
    if novo_ap != atual and st.button("💾 Salvar perfil de acesso"):
        if assign_access_profile(session, user, novo_ap):
            st.rerun()

    # Workspaces
    st.markdown("**Workspaces**")
    for ws in user.workspaces:
        col_nome, col_btn = st.columns([4, 1])
        col_nome.write(f"🗂 {ws.name}")
        if col_btn.button("Remover", key=f"rm_{user.profile.user_id}_{ws.id}"):
            if remove_from_workspace(session, user, ws.id):
                st.rerun()

    membro = {w.id for w in user.workspaces}
    disponiveis = {w.id: w.name for w in workspaces if w.id not in membro}
    if disponiveis:
        ws_id = st.selectbox(
            f"Adicionar {user.profile.full_name} ao workspace",
            list(disponiveis.keys()),
            format_func=lambda wid: disponiveis[wid],
            key=f"add_ws_{user.profile.user_id}",
        )
        if st.button("➕ Adicionar"):
            if add_to_workspace(session, user, ws_id, disponiveis[ws_id]):
                st.rerun()
