"""
Testes dos modelos do portal.
"""

import pytest
from pydantic import ValidationError

from core.models import AccessProfile, AppRole, Dashboard, FilterLevel, Profile, validate_embed_url


class TestFilterLevel:
    def test_order(self):
        assert [lvl.rank for lvl in FilterLevel] == [0, 1, 2, 3]

    def test_includes_lower_levels(self):
        assert FilterLevel.OBRA.includes(FilterLevel.ESTADO)
        assert FilterLevel.OBRA.includes(FilterLevel.CIDADE)
        assert FilterLevel.CIDADE.includes(FilterLevel.ESTADO)
        assert not FilterLevel.ESTADO.includes(FilterLevel.CIDADE)

    def test_none_never_filters(self):
        assert not FilterLevel.NONE.includes(FilterLevel.ESTADO)
        assert not FilterLevel.OBRA.includes(FilterLevel.NONE)

    def test_labels(self):
        assert FilterLevel.NONE.label == "Sem filtro (vê tudo)"
        assert FilterLevel.OBRA.label == "Filtra por estado, cidade e obra"


class TestAccessProfile:
    def test_rejects_unknown_level(self):
        with pytest.raises(ValidationError):
            AccessProfile(name="Diretoria", filter_level="bairro")

    def test_requires_name(self):
        with pytest.raises(ValidationError):
            AccessProfile(name="   ", filter_level="none")

    def test_strips_and_normalises(self):
        ap = AccessProfile(name="  Diretoria ", description="  ", filter_level="cidade")
        assert ap.name == "Diretoria"
        assert ap.description is None
        assert ap.filter_level is FilterLevel.CIDADE
        assert ap.to_row() == {"name": "Diretoria", "description": None, "filter_level": "cidade"}


class TestProfile:
    def test_row_normalisation(self):
        profile = Profile.model_validate(
            {"id": "p", "full_name": None, "email": "x@y.com", "is_active": None,
             "estado": "", "cidade": None, "obra": " ", "access_profile_id": "", "extra_column": 1}
        )
        assert profile.is_active is True
        assert profile.full_name == ""
        assert profile.estado is None and profile.obra is None
        assert profile.access_profile_id is None

    def test_filter_level_without_access_profile(self):
        assert Profile(id="p").filter_level is FilterLevel.NONE

    def test_filter_level_from_access_profile(self):
        profile = Profile.model_validate(
            {"id": "p", "access_profile": {"id": "ap", "name": "Eng", "filter_level": "obra"}}
        )
        assert profile.filter_level is FilterLevel.OBRA

    def test_is_immutable(self):
        profile = Profile(id="p", estado="Ceará")
        with pytest.raises(ValidationError):
            profile.estado = "Pernambuco"


class TestDashboard:
    def test_valid(self):
        d = Dashboard(name="Vendas", embed_url=" https://app.powerbi.com/view?r=1 ", filter_table="")
        assert d.embed_url == "https://app.powerbi.com/view?r=1"
        assert d.filter_table is None

    @pytest.mark.parametrize("url", ["", "app.powerbi.com/view", "ftp://host/file", "https://"])
    def test_invalid_url(self, url):
        with pytest.raises(ValidationError):
            Dashboard(name="Vendas", embed_url=url)

    def test_validate_embed_url_helper(self):
        with pytest.raises(ValueError):
            validate_embed_url("not a url")


def test_role_labels():
    assert AppRole.ADMIN.label == "Administrador"
    assert AppRole("user") is AppRole.USER
