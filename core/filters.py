# core/filters.py
# ============================================================
# Filtro de URL dos painéis embutidos (Power BI)
# ============================================================
#
# O perfil de acesso do usuário define até onde a hierarquia
# estado → cidade → obra restringe os dados do relatório. O filtro
# vai na URL do iframe como ?filter=<Tabela>/<Campo> eq '<valor>' and ...

from typing import Optional
from urllib.parse import quote, urlsplit, urlunsplit

from core.config import DEFAULT_FILTER_TABLE
from core.models import FilterLevel, Profile


# (nível que libera o filtro, campo no relatório, atributo do perfil)
FILTER_FIELDS = (
    (FilterLevel.ESTADO, "Estado", "estado"),
    (FilterLevel.CIDADE, "Cidade", "cidade"),
    (FilterLevel.OBRA, "Obra", "obra"),
)


def _literal(value: str) -> str:
    # aspas simples dobradas (convenção OData)
    return "'" + value.replace("'", "''") + "'"


def build_filter_clauses(profile: Optional[Profile], filter_table: Optional[str] = None) -> list:
    """Cláusulas na ordem estado, cidade, obra. Lista vazia = sem filtro."""
    if profile is None or profile.access_profile is None:
        return []

    level = profile.access_profile.filter_level
    if level is FilterLevel.NONE:
        return []

    table = (filter_table or "").strip() or DEFAULT_FILTER_TABLE

    clauses = []
    for required, field, attr in FILTER_FIELDS:
        value = getattr(profile, attr)
        # cada nível é avaliado sozinho: faltar estado não impede a cidade
        if level.includes(required) and value:
            clauses.append(f"{table}/{field} eq {_literal(value)}")
    return clauses


def build_filter_expression(profile: Optional[Profile], filter_table: Optional[str] = None) -> Optional[str]:
    clauses = build_filter_clauses(profile, filter_table)
    if not clauses:
        return None
    return " and ".join(clauses)


def build_filtered_url(base_url: str, profile: Optional[Profile], filter_table: Optional[str] = None) -> str:
    """
    Retorna a URL que o iframe deve carregar.

    Sem perfil, sem perfil de acesso, nível "none" ou sem valores
    preenchidos → a própria base_url, intacta. Caso contrário acrescenta
    o parâmetro `filter` (com ? ou &, conforme a URL já tenha query).
    """
    expression = build_filter_expression(profile, filter_table)
    if expression is None:
        return base_url

    param = "filter=" + quote(expression, safe="")

    parts = urlsplit(base_url)
    if parts.query:
        query = f"{parts.query}&{param}"
    else:
        query = param

    return urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment))
