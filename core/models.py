# core/models.py
# ============================================================
# Modelos do portal (linhas vindas do Supabase/PostgREST)
# ============================================================

from datetime import datetime
from enum import Enum
from typing import Optional
from urllib.parse import urlsplit

from pydantic import BaseModel, ConfigDict, Field, field_validator


class FilterLevel(str, Enum):
    """Nível de filtragem: none ⊂ estado ⊂ cidade ⊂ obra."""

    NONE = "none"
    ESTADO = "estado"
    CIDADE = "cidade"
    OBRA = "obra"

    @property
    def rank(self) -> int:
        return _FILTER_ORDER.index(self)

    def includes(self, other: "FilterLevel") -> bool:
        """True se este nível aplica o filtro do nível `other`."""
        if other is FilterLevel.NONE:
            return False
        return self.rank >= other.rank

    @property
    def label(self) -> str:
        return FILTER_LEVEL_LABELS[self]


_FILTER_ORDER = [FilterLevel.NONE, FilterLevel.ESTADO, FilterLevel.CIDADE, FilterLevel.OBRA]

FILTER_LEVEL_LABELS = {
    FilterLevel.NONE: "Sem filtro (vê tudo)",
    FilterLevel.ESTADO: "Filtra por estado",
    FilterLevel.CIDADE: "Filtra por estado e cidade",
    FilterLevel.OBRA: "Filtra por estado, cidade e obra",
}


class AppRole(str, Enum):
    ADMIN = "admin"
    USER = "user"

    @property
    def label(self) -> str:
        return "Administrador" if self is AppRole.ADMIN else "Usuário"


def _blank_to_none(v):
    if isinstance(v, str):
        v = v.strip()
        return v or None
    return v


def validate_embed_url(url: str) -> str:
    """URL absoluta http(s). Levanta ValueError caso contrário."""
    url = (url or "").strip()
    parts = urlsplit(url)
    if parts.scheme not in ("http", "https") or not parts.netloc:
        raise ValueError("URL inválida")
    return url


class _Row(BaseModel):
    # PostgREST devolve colunas extras (ex.: embeds); ignoramos
    model_config = ConfigDict(frozen=True, extra="ignore")


class AccessProfile(_Row):
    id: Optional[str] = None
    name: str = Field(min_length=1)
    description: Optional[str] = None
    filter_level: FilterLevel
    created_at: Optional[datetime] = None

    @field_validator("name", mode="before")
    @classmethod
    def _strip_name(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("description", mode="before")
    @classmethod
    def _blank_description(cls, v):
        return _blank_to_none(v)

    def to_row(self) -> dict:
        return {
            "name": self.name,
            "description": self.description,
            "filter_level": self.filter_level.value,
        }


class Profile(_Row):
    id: str
    user_id: Optional[str] = None
    full_name: str = ""
    email: str = ""
    is_active: bool = True
    estado: Optional[str] = None
    cidade: Optional[str] = None
    obra: Optional[str] = None
    access_profile_id: Optional[str] = None
    access_profile: Optional[AccessProfile] = None

    @field_validator("estado", "cidade", "obra", "access_profile_id", mode="before")
    @classmethod
    def _blank_fields(cls, v):
        return _blank_to_none(v)

    @field_validator("is_active", mode="before")
    @classmethod
    def _active_default(cls, v):
        return True if v is None else v

    @field_validator("full_name", "email", mode="before")
    @classmethod
    def _none_to_empty(cls, v):
        return v or ""

    @property
    def filter_level(self) -> FilterLevel:
        if self.access_profile is None:
            return FilterLevel.NONE
        return self.access_profile.filter_level


class WorkspaceRef(_Row):
    id: str
    name: str


class Workspace(_Row):
    id: Optional[str] = None
    name: str = Field(min_length=1)
    description: Optional[str] = None
    created_at: Optional[datetime] = None
    created_by: Optional[str] = None
    dashboard_count: int = 0

    @field_validator("name", mode="before")
    @classmethod
    def _strip_name(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("description", mode="before")
    @classmethod
    def _blank_description(cls, v):
        return _blank_to_none(v)


class Dashboard(_Row):
    id: Optional[str] = None
    name: str = Field(min_length=1)
    description: Optional[str] = None
    embed_url: str
    filter_table: Optional[str] = None
    created_at: Optional[datetime] = None
    created_by: Optional[str] = None
    workspaces: list[WorkspaceRef] = Field(default_factory=list)

    @field_validator("name", mode="before")
    @classmethod
    def _strip_name(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("description", "filter_table", mode="before")
    @classmethod
    def _blank_optional(cls, v):
        return _blank_to_none(v)

    @field_validator("embed_url", mode="before")
    @classmethod
    def _check_url(cls, v):
        return validate_embed_url(v)

    def to_row(self) -> dict:
        return {
            "name": self.name,
            "description": self.description,
            "embed_url": self.embed_url,
            "filter_table": self.filter_table,
        }


class UserRow(_Row):
    """Linha da tabela de usuários do admin (perfil + papel + workspaces)."""

    profile: Profile
    role: AppRole = AppRole.USER
    workspaces: list[WorkspaceRef] = Field(default_factory=list)
