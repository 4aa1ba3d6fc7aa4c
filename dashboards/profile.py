import logging

import streamlit as st

from core import db
from core.locations import location_fields

logger = logging.getLogger(__name__)


def render(session):
    st.title("👤 Meu Perfil")
    st.caption("Atualize sua localização e obra")

    profile = session.get_current_profile()
    if profile is None:
        st.warning("Perfil não carregado. Tente atualizar a página.")
        if st.button("Tentar novamente"):
            session.refresh()
            st.rerun()
        return

    st.markdown(f"**{profile.full_name}** • {profile.email}")
    if profile.access_profile is not None:
        st.caption(f"Perfil de acesso: {profile.access_profile.name} — {profile.access_profile.filter_level.label}")

    estado, cidade, obra = location_fields(
        profile.estado, profile.cidade, profile.obra, key_prefix=f"perfil_{profile.id}"
    )

    if st.button("💾 Salvar Alterações", type="primary", use_container_width=True):
        try:
            db.update_profile_location(session.client, profile.id, estado, cidade, obra)
        except db.PortalDataError as e:
            st.error(f"Erro ao atualizar perfil: {e}")
            return

        session.refresh()
        logger.info("Perfil %s atualizou a localização", profile.id)
        st.success("Perfil atualizado com sucesso!")
