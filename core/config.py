# core/config.py
# ================================================
# Configuração central do Portal BI
# ================================================

import logging
import os
from dataclasses import dataclass

import streamlit as st


DEFAULT_FILTER_TABLE = "Obras"
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def _get_secret(name: str, default=None):
    """
    Prioriza st.secrets; em dev local usa variável de ambiente.
    Não quebra o import quando não existe secrets.toml.
    """
    try:
        if name in st.secrets:
            return st.secrets[name]
    except Exception:
        # st.secrets levanta quando não há arquivo de secrets
        pass
    return os.getenv(name, default)


@dataclass(frozen=True)
class Settings:
    supabase_url: str
    supabase_key: str
    filter_table: str = DEFAULT_FILTER_TABLE
    site_url: str | None = None
    http_timeout: int = 20


def get_settings() -> Settings:
    """Lê as configurações. Falha só quando alguém realmente precisa do Supabase."""
    url = _get_secret("SUPABASE_URL")
    key = _get_secret("SUPABASE_KEY")

    if not url or not key:
        raise RuntimeError("SUPABASE_URL ou SUPABASE_KEY não definidos no st.secrets.")

    return Settings(
        supabase_url=str(url).rstrip("/"),
        supabase_key=str(key),
        filter_table=_get_secret("PORTAL_FILTER_TABLE") or DEFAULT_FILTER_TABLE,
        site_url=_get_secret("SITE_URL"),
        http_timeout=int(_get_secret("HTTP_TIMEOUT", 20)),
    )


def configure_logging(level: str | None = None):
    """Configura o logging uma única vez (o Streamlit reexecuta o script a cada interação)."""
    level = (level or str(_get_secret("LOG_LEVEL", "INFO"))).upper()
    root = logging.getLogger()
    if getattr(configure_logging, "_done", False):
        root.setLevel(level)
        return

    logging.basicConfig(level=level, format=LOG_FORMAT)
    configure_logging._done = True
