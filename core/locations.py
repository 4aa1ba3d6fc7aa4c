# core/locations.py
# ============================================================
# Catálogo estado → cidade → obra (cadastro e "Meu Perfil")
# ============================================================

import json
from functools import lru_cache
from pathlib import Path
from typing import List, Optional, Tuple

import streamlit as st

LOCATIONS_FILE = Path(__file__).resolve().parent.parent / "data" / "locations.json"


@lru_cache(maxsize=None)
def load_locations(path: str = str(LOCATIONS_FILE)) -> dict:
    with open(path, encoding="utf-8") as f:
        return json.load(f)


def _find(items, nome):
    for item in items:
        if item.get("nome") == nome:
            return item
    return None


def list_estados(data: Optional[dict] = None) -> List[str]:
    data = data or load_locations()
    return [e["nome"] for e in data.get("estados", [])]


def list_cidades(estado: Optional[str], data: Optional[dict] = None) -> List[str]:
    if not estado:
        return []
    data = data or load_locations()
    found = _find(data.get("estados", []), estado)
    return [c["nome"] for c in found.get("cidades", [])] if found else []


def list_obras(estado: Optional[str], cidade: Optional[str], data: Optional[dict] = None) -> List[str]:
    if not estado or not cidade:
        return []
    data = data or load_locations()
    found_estado = _find(data.get("estados", []), estado)
    if not found_estado:
        return []
    found_cidade = _find(found_estado.get("cidades", []), cidade)
    return list(found_cidade.get("obras", [])) if found_cidade else []


def cascade_location(estado, cidade, obra) -> Tuple[Optional[str], Optional[str], Optional[str]]:
    """
    Cidade só vale com estado; obra só com estado e cidade.
    Valores vazios viram None (como são gravados no banco).
    """
    estado = (estado or "").strip() or None
    cidade = ((cidade or "").strip() or None) if estado else None
    obra = ((obra or "").strip() or None) if cidade else None
    return estado, cidade, obra


def _index(options, value):
    return options.index(value) if value in options else None


def location_fields(estado=None, cidade=None, obra=None, key_prefix: str = "loc"):
    """
    Três selects em cascata. Trocar o estado limpa cidade e obra;
    trocar a cidade limpa a obra.
    """
    estados = list_estados()
    estado_sel = st.selectbox(
        "Estado",
        estados,
        index=_index(estados, estado),
        placeholder="Selecione o estado",
        key=f"{key_prefix}_estado",
    )

    cidades = list_cidades(estado_sel)
    cidade_sel = st.selectbox(
        "Cidade",
        cidades,
        index=_index(cidades, cidade if estado_sel == estado else None),
        placeholder="Selecione a cidade" if estado_sel else "Selecione o estado primeiro",
        disabled=not estado_sel,
        key=f"{key_prefix}_cidade_{estado_sel}",
    )

    obras = list_obras(estado_sel, cidade_sel)
    obra_sel = st.selectbox(
        "Obra",
        obras,
        index=_index(obras, obra if cidade_sel == cidade else None),
        placeholder="Selecione a obra" if cidade_sel else "Selecione a cidade primeiro",
        disabled=not cidade_sel,
        key=f"{key_prefix}_obra_{estado_sel}_{cidade_sel}",
    )

    return cascade_location(estado_sel, cidade_sel, obra_sel)
