import logging
from typing import Optional

import streamlit as st
import streamlit.components.v1 as components

from core import db
from core.config import get_settings
from core.filters import build_filtered_url

logger = logging.getLogger(__name__)

FULLSCREEN_KEY = "dashboard_fullscreen"


def embed_url_for(dashboard, profile, default_table: str) -> str:
    """URL do iframe: tabela do painel, ou a padrão da configuração."""
    return build_filtered_url(dashboard.embed_url, profile, dashboard.filter_table or default_table)


def blocked_reason(session) -> Optional[str]:
    """
    Mensagem quando o relatório não deve ser exibido, ou None.

    Sem perfil carregado não há como montar o filtro: o RLS só restringe
    quais painéis aparecem, não as linhas dentro do relatório.
    """
    if not session.snapshot.profile_loaded:
        return "Perfil não carregado. Recarregue o perfil para ver o painel."
    profile = session.get_current_profile()
    if profile is not None and not profile.is_active:
        return "Sua conta está desativada. Fale com um administrador."
    return None


def render(session, dashboard_id: str, on_back=None):
    try:
        dashboard = db.get_dashboard(session.client, dashboard_id)
    except db.PortalDataError as e:
        logger.error("Erro ao carregar painel %s: %s", dashboard_id, e)
        dashboard = None

    if dashboard is None:
        st.warning("Painel não encontrado.")
        if on_back:
            st.button("⬅ Voltar", on_click=on_back)
        return

    motivo = blocked_reason(session)
    if motivo:
        st.warning(motivo)
        if on_back:
            st.button("⬅ Voltar", on_click=on_back)
        return

    url = embed_url_for(dashboard, session.get_current_profile(), get_settings().filter_table)

    c1, c2 = st.columns([4, 1])
    with c1:
        if on_back:
            st.button("⬅ Voltar", on_click=on_back)
        st.title(dashboard.name)
        if dashboard.description:
            st.caption(dashboard.description)
    with c2:
        fullscreen = st.toggle("Tela cheia", key=FULLSCREEN_KEY)

    components.iframe(url, height=900 if fullscreen else 620, scrolling=True)
