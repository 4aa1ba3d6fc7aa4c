# core/auth.py
# ============================================================
# Autenticação (Supabase GoTrue via REST) + telas de login/cadastro
# ============================================================

import logging
from dataclasses import dataclass
from typing import Optional

import requests
import streamlit as st

from core.config import get_settings
from core.locations import cascade_location, location_fields

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


class AuthError(Exception):
    def __init__(self, message: str, status: Optional[int] = None, already_registered: bool = False):
        super().__init__(message)
        self.message = message
        self.status = status
        self.already_registered = already_registered


@dataclass(frozen=True)
class AuthUser:
    id: str
    email: str
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None


def _error_message(response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if not isinstance(data, dict):
        return str(data)
    return (
        data.get("error_description")
        or data.get("msg")
        or data.get("message")
        or data.get("error")
        or f"HTTP {response.status_code}"
    )


class AuthAPI:
    """Mini-cliente REST do GoTrue (/auth/v1)."""

    def __init__(self, url: str, key: str, timeout: int = 20, site_url: Optional[str] = None):
        self.url = url.rstrip("/")
        self.key = key
        self.timeout = timeout
        self.site_url = site_url

    @classmethod
    def from_settings(cls, settings=None) -> "AuthAPI":
        settings = settings or get_settings()
        return cls(
            settings.supabase_url,
            settings.supabase_key,
            timeout=settings.http_timeout,
            site_url=settings.site_url,
        )

    def headers(self, access_token: Optional[str] = None):
        return {
            "apikey": self.key,
            "Authorization": f"Bearer {access_token or self.key}",
            "Content-Type": "application/json",
        }

    # -------------------------
    # LOGIN
    # -------------------------
    def sign_in(self, email: str, password: str) -> AuthUser:
        endpoint = f"{self.url}/auth/v1/token"
        payload = {"email": (email or "").strip(), "password": password}

        r = requests.post(
            endpoint,
            headers=self.headers(),
            params={"grant_type": "password"},
            json=payload,
            timeout=self.timeout,
        )

        if r.status_code != 200:
            message = _error_message(r)
            logger.info("Login recusado para %s: %s", payload["email"], message)
            if "not confirmed" in message.lower():
                raise AuthError("Email não confirmado. Verifique sua caixa de entrada.", r.status_code)
            raise AuthError("Email ou senha inválidos.", r.status_code)

        data = r.json()
        user = data.get("user") or {}
        return AuthUser(
            id=user.get("id"),
            email=user.get("email") or payload["email"],
            access_token=data.get("access_token"),
            refresh_token=data.get("refresh_token"),
        )

    # -------------------------
    # CADASTRO
    # -------------------------
    def sign_up(
        self,
        email: str,
        password: str,
        full_name: str,
        metadata: Optional[dict] = None,
        redirect_to: Optional[str] = None,
    ) -> Optional[AuthUser]:
        endpoint = f"{self.url}/auth/v1/signup"
        data = {"full_name": (full_name or "").strip()}
        data.update(metadata or {})
        payload = {"email": (email or "").strip(), "password": password, "data": data}

        redirect_to = redirect_to or self.site_url
        params = {"redirect_to": redirect_to} if redirect_to else None
        r = requests.post(endpoint, headers=self.headers(), params=params, json=payload, timeout=self.timeout)

        if r.status_code not in (200, 201):
            message = _error_message(r)
            if "already registered" in message.lower() or "already exists" in message.lower():
                raise AuthError(
                    "Este email já está sendo utilizado. Tente fazer login.",
                    r.status_code,
                    already_registered=True,
                )
            raise AuthError(message, r.status_code)

        body = r.json()
        # com confirmação de email o GoTrue devolve só o usuário, sem sessão
        user = body.get("user") or (body if "id" in body else None)
        if not user:
            return None
        return AuthUser(
            id=user.get("id"),
            email=user.get("email") or payload["email"],
            access_token=body.get("access_token"),
            refresh_token=body.get("refresh_token"),
        )

    # -------------------------
    # LOGOUT
    # -------------------------
    def sign_out(self, access_token: str):
        endpoint = f"{self.url}/auth/v1/logout"
        r = requests.post(endpoint, headers=self.headers(access_token), timeout=self.timeout)
        r.raise_for_status()


def validate_new_password(password: str, confirm: str):
    """Mesmas regras do formulário de cadastro."""
    if password != confirm:
        raise AuthError("Senhas não conferem. Verifique se as senhas são iguais.")
    if len(password or "") < MIN_PASSWORD_LENGTH:
        raise AuthError(f"A senha deve ter pelo menos {MIN_PASSWORD_LENGTH} caracteres.")


# ============================================================
# Telas
# ============================================================

def login_screen(session):
    st.title("🔐 Portal BI — Entrar")

    with st.form("form_login"):
        email = st.text_input("Email", placeholder="seu@email.com")
        password = st.text_input("Senha", type="password")
        entrar = st.form_submit_button("Entrar", type="primary", use_container_width=True)

    if entrar:
        try:
            session.sign_in(email, password)
        except AuthError as e:
            st.error(e.message)
            return
        except requests.RequestException as e:
            logger.exception("Falha de rede no login")
            st.error(f"Erro ao fazer login: {e}")
            return

        st.success("Login realizado com sucesso! Bem-vindo de volta.")
        st.rerun()

    if st.button("Não tem conta? Cadastre-se"):
        st.session_state["auth_page"] = "register"
        st.rerun()


def register_screen(session):
    st.title("📝 Portal BI — Criar conta")

    full_name = st.text_input("Nome completo", placeholder="Seu nome")
    email = st.text_input("Email", placeholder="seu@email.com")
    password = st.text_input("Senha", type="password")
    confirm = st.text_input("Confirmar senha", type="password")

    # fora de st.form: a cascata precisa reexecutar a cada seleção
    estado, cidade, obra = location_fields(key_prefix="register")

    if st.button("Criar conta", type="primary", use_container_width=True):
        try:
            validate_new_password(password, confirm)
            estado, cidade, obra = cascade_location(estado, cidade, obra)
            session.register(
                email,
                password,
                full_name,
                estado=estado,
                cidade=cidade,
                obra=obra,
            )
        except AuthError as e:
            st.error(e.message)
            return
        except requests.RequestException as e:
            logger.exception("Falha de rede no cadastro")
            st.error(f"Ocorreu um erro inesperado. Tente novamente. ({e})")
            return

        st.success("Conta criada com sucesso! Verifique seu email para confirmar sua conta.")
        st.session_state["auth_page"] = "login"

    if st.button("Já tem conta? Entrar"):
        st.session_state["auth_page"] = "login"
        st.rerun()
