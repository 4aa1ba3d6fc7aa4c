# core/session.py
# ============================================================
# Sessão do usuário: identidade, perfil e flag de admin
# ============================================================
#
# Um SessionContext por aba do navegador (guardado em st.session_state)
# e passado explicitamente para as páginas. O estado fica num snapshot
# imutável; cada refresh produz um snapshot novo.

import itertools
import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

import requests
import streamlit as st

from core import db
from core.auth import AuthAPI, AuthError, AuthUser
from core.models import AppRole, Profile

logger = logging.getLogger(__name__)

SESSION_KEY = "portal_session"


class SessionStatus(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATING = "authenticating"
    AUTHENTICATED = "authenticated"


@dataclass(frozen=True)
class SessionSnapshot:
    status: SessionStatus = SessionStatus.UNAUTHENTICATED
    user: Optional[AuthUser] = None
    profile: Optional[Profile] = None
    is_admin: bool = False
    profile_loaded: bool = False
    sequence: int = 0


class SessionContext:
    """
    Guarda o snapshot da sessão e o client Supabase do usuário.

    refresh() não é cancelável: se dois refreshes se cruzam, vale o
    mais recente; resultados antigos (ou de antes de um sign_out) são
    descartados.
    """

    def __init__(self, auth: AuthAPI, client_factory: Callable):
        self._auth = auth
        self._client_factory = client_factory
        self._client = None
        self._snapshot = SessionSnapshot()
        self._lock = threading.Lock()
        self._sequence = itertools.count(1)
        self._applied = 0
        self._generation = 0
        self._subscribers = []

    # -------------------------
    # Leitura
    # -------------------------
    @property
    def snapshot(self) -> SessionSnapshot:
        return self._snapshot

    @property
    def user(self) -> Optional[AuthUser]:
        return self._snapshot.user

    @property
    def client(self):
        return self._client

    @property
    def is_authenticated(self) -> bool:
        return self._snapshot.status is SessionStatus.AUTHENTICATED

    @property
    def is_admin(self) -> bool:
        return self._snapshot.is_admin

    def get_current_profile(self) -> Optional[Profile]:
        return self._snapshot.profile

    # -------------------------
    # Observadores
    # -------------------------
    def subscribe(self, callback: Callable[[SessionSnapshot], None]) -> Callable[[], None]:
        self._subscribers.append(callback)

        def unsubscribe():
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def _publish(self, snapshot: SessionSnapshot):
        for callback in list(self._subscribers):
            # um observador pode ter disparado outro refresh: o snapshot
            # mais novo já foi entregue a todos, este não segue adiante
            if snapshot is not self._snapshot:
                break
            try:
                callback(snapshot)
            except Exception:
                logger.exception("Observador da sessão falhou")

    def _set(self, snapshot: SessionSnapshot):
        with self._lock:
            self._snapshot = snapshot
        self._publish(snapshot)

    # -------------------------
    # Login / cadastro / logout
    # -------------------------
    def sign_in(self, email: str, password: str) -> SessionSnapshot:
        with self._lock:
            self._generation += 1
        self._set(SessionSnapshot(status=SessionStatus.AUTHENTICATING))

        try:
            user = self._auth.sign_in(email, password)
        except (AuthError, requests.RequestException):
            self._client = None
            self._set(SessionSnapshot())
            raise

        self._client = self._client_factory(user.access_token)
        self._set(SessionSnapshot(status=SessionStatus.AUTHENTICATED, user=user))
        logger.info("Usuário %s autenticado", user.email)
        return self.refresh()

    def register(self, email: str, password: str, full_name: str, estado=None, cidade=None, obra=None):
        """
        Cria a conta. A localização vai nos metadados do usuário e, quando o
        GoTrue já devolve sessão (sem confirmação de email), também é gravada
        no perfil criado pelo trigger.
        """
        metadata = {"estado": estado, "cidade": cidade, "obra": obra}
        user = self._auth.sign_up(email, password, full_name, metadata={k: v for k, v in metadata.items() if v})

        if user is not None and user.access_token:
            client = self._client_factory(user.access_token)
            try:
                db.update_profile_location_by_user(client, user.id, estado, cidade, obra)
            except db.PortalDataError:
                logger.warning("Não foi possível gravar a localização de %s no cadastro", user.email)
        return user

    def sign_out(self):
        with self._lock:
            self._generation += 1
            user = self._snapshot.user

        if user is not None and user.access_token:
            try:
                self._auth.sign_out(user.access_token)
            except requests.RequestException as e:
                logger.warning("Falha ao revogar token no logout: %s", e)

        self._client = None
        if self._snapshot != SessionSnapshot():
            self._set(SessionSnapshot())

    # -------------------------
    # Refresh
    # -------------------------
    def refresh(self) -> SessionSnapshot:
        with self._lock:
            current = self._snapshot
            generation = self._generation
            sequence = next(self._sequence)
            client = self._client

        if current.user is None or client is None:
            return current

        try:
            profile = db.fetch_profile(client, current.user.id)
            # papel depois do perfil, em sequência
            role = db.fetch_role(client, current.user.id)
            fresh = SessionSnapshot(
                status=SessionStatus.AUTHENTICATED,
                user=current.user,
                profile=profile,
                is_admin=role is AppRole.ADMIN,
                profile_loaded=profile is not None,
                sequence=sequence,
            )
        except (db.PortalDataError, requests.RequestException, ValueError) as e:
            logger.error("Erro ao carregar dados do usuário %s: %s", current.user.email, e)
            fresh = SessionSnapshot(
                status=SessionStatus.AUTHENTICATED,
                user=current.user,
                sequence=sequence,
            )
        else:
            if profile is None:
                logger.warning("Usuário %s sem perfil cadastrado", current.user.email)

        with self._lock:
            stale = generation != self._generation or sequence < self._applied
            if not stale:
                self._applied = sequence
                self._snapshot = fresh
            latest = self._snapshot

        if stale:
            logger.debug("Refresh %s descartado (resultado antigo)", sequence)
            return latest

        self._publish(fresh)
        return fresh


def get_session() -> SessionContext:
    """SessionContext da aba atual; cria na primeira execução."""
    session = st.session_state.get(SESSION_KEY)
    if session is None:
        from core.supabase_client import create_user_client

        session = SessionContext(AuthAPI.from_settings(), create_user_client)
        st.session_state[SESSION_KEY] = session
    return session
