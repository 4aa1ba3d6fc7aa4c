# core/db.py
# ================================================
# Acesso aos dados do portal no Supabase (PostgREST)
# ================================================
#
# Todas as funções recebem o client da sessão (`sb`) como primeiro
# argumento: o token do usuário segue junto e o RLS decide o que aparece.

import logging
from typing import Iterable, List, Optional

import httpx
from supabase import Client, PostgrestAPIError

from core.models import (
    AccessProfile,
    AppRole,
    Dashboard,
    Profile,
    UserRow,
    Workspace,
    WorkspaceRef,
)

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION = "23505"


class PortalDataError(Exception):
    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.code = code


class DuplicateKeyError(PortalDataError):
    pass


def _execute(query, action: str):
    """Executa a query traduzindo erros do PostgREST."""
    try:
        return query.execute()
    except PostgrestAPIError as e:
        code = getattr(e, "code", None)
        logger.error("Erro do Supabase ao %s: %s (code=%s)", action, getattr(e, "message", e), code)
        if code == UNIQUE_VIOLATION:
            raise DuplicateKeyError(f"Registro duplicado ao {action}", code) from e
        raise PortalDataError(f"Erro ao {action}", code) from e
    except httpx.HTTPError as e:
        logger.error("Falha de rede ao %s: %s", action, e)
        raise PortalDataError(f"Erro ao {action}") from e


def _first(res):
    data = res.data if res is not None else None
    return data[0] if data else None


def _workspace_refs(links: Optional[Iterable[dict]]) -> List[WorkspaceRef]:
    # embed dashboard_workspaces(workspace:workspaces(id, name))
    refs = []
    for link in links or []:
        ws = link.get("workspace") if isinstance(link, dict) else None
        if ws:
            refs.append(WorkspaceRef.model_validate(ws))
    return refs


# ===============================
# PERFIS
# ===============================

def fetch_profile(sb: Client, user_id: str) -> Optional[Profile]:
    """Perfil do usuário com o perfil de acesso aninhado (ou None)."""
    res = _execute(
        sb.table("profiles").select("*").eq("user_id", user_id).limit(1),
        "carregar perfil",
    )
    row = _first(res)
    if not row:
        return None

    access_profile = None
    if row.get("access_profile_id"):
        res_ap = _execute(
            sb.table("access_profiles")
            .select("id, name, filter_level")
            .eq("id", row["access_profile_id"])
            .limit(1),
            "carregar perfil de acesso",
        )
        access_profile = _first(res_ap)

    return Profile.model_validate({**row, "access_profile": access_profile})


def list_profiles(sb: Client) -> List[Profile]:
    res = _execute(
        sb.table("profiles")
        .select("id, user_id, full_name, email, is_active, estado, cidade, obra, access_profile_id")
        .order("full_name"),
        "carregar usuários",
    )
    return [Profile.model_validate(r) for r in res.data or []]


def update_profile_location(sb: Client, profile_id: str, estado=None, cidade=None, obra=None):
    payload = {"estado": estado or None, "cidade": cidade or None, "obra": obra or None}
    return _execute(
        sb.table("profiles").update(payload).eq("id", profile_id),
        "atualizar perfil",
    ).data


def update_profile_location_by_user(sb: Client, user_id: str, estado=None, cidade=None, obra=None):
    payload = {"estado": estado or None, "cidade": cidade or None, "obra": obra or None}
    return _execute(
        sb.table("profiles").update(payload).eq("user_id", user_id),
        "atualizar perfil",
    ).data


def set_profile_active(sb: Client, user_id: str, is_active: bool):
    return _execute(
        sb.table("profiles").update({"is_active": bool(is_active)}).eq("user_id", user_id),
        "atualizar usuário",
    ).data


def set_profile_access_profile(sb: Client, user_id: str, access_profile_id: Optional[str]):
    return _execute(
        sb.table("profiles").update({"access_profile_id": access_profile_id or None}).eq("user_id", user_id),
        "atribuir perfil de acesso",
    ).data


# ===============================
# PAPÉIS
# ===============================

def fetch_role(sb: Client, user_id: str) -> AppRole:
    res = _execute(
        sb.table("user_roles").select("role").eq("user_id", user_id).limit(1),
        "carregar papel",
    )
    row = _first(res)
    if row and row.get("role") == AppRole.ADMIN.value:
        return AppRole.ADMIN
    return AppRole.USER


def list_roles(sb: Client) -> dict:
    """user_id -> AppRole."""
    res = _execute(sb.table("user_roles").select("user_id, role"), "carregar papéis")
    roles = {}
    for r in res.data or []:
        roles[r["user_id"]] = AppRole.ADMIN if r.get("role") == AppRole.ADMIN.value else AppRole.USER
    return roles


def set_role(sb: Client, user_id: str, role: AppRole):
    return _execute(
        sb.table("user_roles").update({"role": AppRole(role).value}).eq("user_id", user_id),
        "atualizar papel",
    ).data


# ===============================
# PERFIS DE ACESSO
# ===============================

def list_access_profiles(sb: Client) -> List[AccessProfile]:
    res = _execute(
        sb.table("access_profiles").select("*").order("created_at"),
        "carregar perfis de acesso",
    )
    return [AccessProfile.model_validate(r) for r in res.data or []]


def create_access_profile(sb: Client, profile: AccessProfile) -> Optional[AccessProfile]:
    res = _execute(sb.table("access_profiles").insert(profile.to_row()), "criar perfil de acesso")
    row = _first(res)
    return AccessProfile.model_validate(row) if row else None


def update_access_profile(sb: Client, access_profile_id: str, profile: AccessProfile):
    return _execute(
        sb.table("access_profiles").update(profile.to_row()).eq("id", access_profile_id),
        "atualizar perfil de acesso",
    ).data


def delete_access_profile(sb: Client, access_profile_id: str):
    # referências em profiles ficam a cargo da FK (on delete set null)
    return _execute(
        sb.table("access_profiles").delete().eq("id", access_profile_id),
        "excluir perfil de acesso",
    ).data


# ===============================
# PAINÉIS
# ===============================

DASHBOARD_COLUMNS = (
    "id, name, description, embed_url, filter_table, created_at, "
    "dashboard_workspaces(workspace:workspaces(id, name))"
)


def _dashboard_from_row(row: dict) -> Dashboard:
    data = dict(row)
    data["workspaces"] = _workspace_refs(data.pop("dashboard_workspaces", None))
    return Dashboard.model_validate(data)


def list_dashboards(sb: Client) -> List[Dashboard]:
    res = _execute(sb.table("dashboards").select(DASHBOARD_COLUMNS), "carregar painéis")
    return [_dashboard_from_row(r) for r in res.data or []]


def get_dashboard(sb: Client, dashboard_id: str) -> Optional[Dashboard]:
    res = _execute(
        sb.table("dashboards")
        .select("id, name, description, embed_url, filter_table")
        .eq("id", dashboard_id)
        .limit(1),
        "carregar painel",
    )
    row = _first(res)
    return _dashboard_from_row(row) if row else None


def _link_workspaces(sb: Client, dashboard_id: str, workspace_ids: Iterable[str]):
    rows = [{"dashboard_id": dashboard_id, "workspace_id": ws_id} for ws_id in workspace_ids]
    if rows:
        _execute(sb.table("dashboard_workspaces").insert(rows), "vincular workspaces")


def create_dashboard(
    sb: Client,
    dashboard: Dashboard,
    workspace_ids: Iterable[str] = (),
    created_by: Optional[str] = None,
) -> Optional[Dashboard]:
    payload = dashboard.to_row()
    payload["created_by"] = created_by
    res = _execute(sb.table("dashboards").insert(payload), "criar painel")
    row = _first(res)
    if not row:
        return None

    _link_workspaces(sb, row["id"], list(workspace_ids))
    return _dashboard_from_row(row)


def update_dashboard(sb: Client, dashboard_id: str, dashboard: Dashboard, workspace_ids: Iterable[str] = ()):
    _execute(
        sb.table("dashboards").update(dashboard.to_row()).eq("id", dashboard_id),
        "atualizar painel",
    )
    # substitui todos os vínculos
    _execute(
        sb.table("dashboard_workspaces").delete().eq("dashboard_id", dashboard_id),
        "desvincular workspaces",
    )
    _link_workspaces(sb, dashboard_id, list(workspace_ids))


def delete_dashboard(sb: Client, dashboard_id: str):
    return _execute(sb.table("dashboards").delete().eq("id", dashboard_id), "excluir painel").data


# ===============================
# WORKSPACES
# ===============================

def _workspace_from_row(row: dict) -> Workspace:
    data = dict(row)
    counts = data.pop("dashboard_workspaces", None) or []
    data["dashboard_count"] = counts[0].get("count", 0) if counts else 0
    return Workspace.model_validate(data)


def list_workspaces(sb: Client) -> List[Workspace]:
    res = _execute(
        sb.table("workspaces")
        .select("id, name, description, created_at, dashboard_workspaces(count)")
        .order("name"),
        "carregar workspaces",
    )
    return [_workspace_from_row(r) for r in res.data or []]


def create_workspace(sb: Client, workspace: Workspace, created_by: Optional[str] = None) -> Optional[Workspace]:
    payload = {"name": workspace.name, "description": workspace.description, "created_by": created_by}
    row = _first(_execute(sb.table("workspaces").insert(payload), "criar workspace"))
    return _workspace_from_row(row) if row else None


def update_workspace(sb: Client, workspace_id: str, workspace: Workspace):
    payload = {"name": workspace.name, "description": workspace.description}
    return _execute(
        sb.table("workspaces").update(payload).eq("id", workspace_id),
        "atualizar workspace",
    ).data


def delete_workspace(sb: Client, workspace_id: str):
    return _execute(sb.table("workspaces").delete().eq("id", workspace_id), "excluir workspace").data


# ===============================
# MEMBROS DE WORKSPACE
# ===============================

def list_memberships(sb: Client) -> dict:
    """user_id -> [WorkspaceRef]."""
    res = _execute(
        sb.table("user_workspaces").select("user_id, workspace:workspaces(id, name)"),
        "carregar membros",
    )
    memberships = {}
    for r in res.data or []:
        ws = r.get("workspace")
        if ws:
            memberships.setdefault(r["user_id"], []).append(WorkspaceRef.model_validate(ws))
    return memberships


def add_user_to_workspace(sb: Client, user_id: str, workspace_id: str):
    return _execute(
        sb.table("user_workspaces").insert({"user_id": user_id, "workspace_id": workspace_id}),
        "adicionar ao workspace",
    ).data


def remove_user_from_workspace(sb: Client, user_id: str, workspace_id: str):
    return _execute(
        sb.table("user_workspaces").delete().eq("user_id", user_id).eq("workspace_id", workspace_id),
        "remover do workspace",
    ).data


def list_users(sb: Client) -> List[UserRow]:
    """Perfis + papéis + workspaces, combinados para a tela de usuários."""
    profiles = list_profiles(sb)
    roles = list_roles(sb)
    memberships = list_memberships(sb)
    return [
        UserRow(
            profile=p,
            role=roles.get(p.user_id, AppRole.USER),
            workspaces=memberships.get(p.user_id, []),
        )
        for p in profiles
    ]
