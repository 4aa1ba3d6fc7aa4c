import logging
from typing import Optional

from supabase import Client, create_client

from core.config import get_settings

logger = logging.getLogger(__name__)


# ============================================================
# CLIENT SUPABASE DA SESSÃO
# ============================================================

def create_user_client(access_token: Optional[str]) -> Client:
    """
    Client exclusivo da sessão do navegador. Com o token do usuário
    o PostgREST aplica as políticas de row-level security.
    Nunca é compartilhado entre sessões (sem st.cache_resource aqui).
    """
    settings = get_settings()
    client = create_client(settings.supabase_url, settings.supabase_key)
    if access_token:
        client.postgrest.auth(access_token)
    else:
        logger.warning("Client criado sem token de usuário; RLS tratará como anônimo.")
    return client
