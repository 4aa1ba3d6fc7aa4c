# core/permissions.py
# ============================================
# Permissões por papel (admin / user)
# ============================================

import streamlit as st

from core.models import AppRole

DEFAULT_PERMISSIONS = {
    AppRole.ADMIN: [
        "view_dashboard",
        "manage_users",
        "manage_workspaces",
        "manage_dashboards",
        "manage_access_profiles",
    ],
    AppRole.USER: [
        "view_dashboard",
    ],
}


def get_role(session) -> AppRole:
    """Papel do usuário logado; sem sessão carregada vale 'user'."""
    return AppRole.ADMIN if session.is_admin else AppRole.USER


def get_user_permissions(session) -> list:
    if not session.is_authenticated:
        return []
    return DEFAULT_PERMISSIONS.get(get_role(session), [])


def has_permission(session, permission: str) -> bool:
    return permission in get_user_permissions(session)


def require_permission(session, permission: str) -> bool:
    """Guard das páginas admin: avisa e retorna False se não puder."""
    if has_permission(session, permission):
        return True
    st.error("Acesso restrito a administradores.")
    return False
