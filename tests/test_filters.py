"""
Testes do filtro de URL dos painéis embutidos.
"""

from urllib.parse import parse_qs, unquote, urlsplit

import pytest

from core.filters import build_filter_expression, build_filtered_url
from core.models import AccessProfile, FilterLevel, Profile

BASE = "https://app.powerbi.com/reportEmbed?reportId=abc"


def make_profile(level=None, estado=None, cidade=None, obra=None):
    access_profile = None
    if level is not None:
        access_profile = AccessProfile(id="ap", name="Perfil", filter_level=level)
    return Profile(id="p", estado=estado, cidade=cidade, obra=obra, access_profile=access_profile)


def decoded_filter(url):
    return parse_qs(urlsplit(url).query)["filter"][0]


class TestNoFilter:
    """Casos em que a URL base volta intacta."""

    def test_no_profile(self):
        assert build_filtered_url(BASE, None) == BASE

    def test_no_access_profile(self):
        profile = make_profile(estado="Ceará", cidade="Fortaleza", obra="Residencial Beira Mar")
        assert build_filtered_url(BASE, profile) == BASE

    def test_level_none(self):
        profile = make_profile(FilterLevel.NONE, estado="Ceará", cidade="Fortaleza", obra="X")
        assert build_filtered_url(BASE, profile) == BASE

    def test_permitted_levels_but_empty_fields(self):
        profile = make_profile(FilterLevel.OBRA)
        assert build_filtered_url(BASE, profile) == BASE
        assert build_filter_expression(profile) is None

    def test_empty_strings_count_as_missing(self):
        profile = make_profile(FilterLevel.CIDADE, estado="", cidade="  ")
        assert build_filtered_url(BASE, profile) == BASE


class TestClauses:
    """Quais cláusulas cada nível gera."""

    def test_estado_level_only_state(self):
        profile = make_profile(FilterLevel.ESTADO, estado="Ceará")
        assert build_filter_expression(profile) == "Obras/Estado eq 'Ceará'"

    def test_estado_level_ignores_city_and_site(self):
        profile = make_profile(FilterLevel.ESTADO, estado="Ceará", cidade="Fortaleza", obra="Beira Mar")
        assert build_filter_expression(profile) == "Obras/Estado eq 'Ceará'"

    def test_obra_level_all_three_in_order(self):
        profile = make_profile(FilterLevel.OBRA, estado="Ceará", cidade="Fortaleza", obra="Beira Mar")
        assert build_filter_expression(profile) == (
            "Obras/Estado eq 'Ceará' and Obras/Cidade eq 'Fortaleza' and Obras/Obra eq 'Beira Mar'"
        )

    def test_cidade_level_missing_city_keeps_state(self):
        profile = make_profile(FilterLevel.CIDADE, estado="Ceará", obra="Beira Mar")
        assert build_filter_expression(profile) == "Obras/Estado eq 'Ceará'"

    def test_levels_are_independent(self):
        # sem estado, a cidade ainda entra
        profile = make_profile(FilterLevel.OBRA, cidade="Fortaleza", obra="Beira Mar")
        assert build_filter_expression(profile) == "Obras/Cidade eq 'Fortaleza' and Obras/Obra eq 'Beira Mar'"

    def test_custom_filter_table(self):
        profile = make_profile(FilterLevel.ESTADO, estado="Ceará")
        assert build_filter_expression(profile, "Empreendimentos") == "Empreendimentos/Estado eq 'Ceará'"

    def test_blank_filter_table_uses_default(self):
        profile = make_profile(FilterLevel.ESTADO, estado="Ceará")
        assert build_filter_expression(profile, "  ") == "Obras/Estado eq 'Ceará'"

    def test_single_quote_is_doubled(self):
        profile = make_profile(FilterLevel.OBRA, estado="Ceará", cidade="Fortaleza", obra="Edifício D'Ávila")
        expression = build_filter_expression(profile)
        assert expression.endswith("Obras/Obra eq 'Edifício D''Ávila'")


class TestUrlComposition:
    """Separador da query, codificação e pureza."""

    def test_cidade_level_appends_to_existing_query(self):
        profile = make_profile(FilterLevel.CIDADE, estado="Ceará", cidade="Fortaleza", obra="")
        url = build_filtered_url("https://embed.example/r?x=1", profile)
        assert url == (
            "https://embed.example/r?x=1&filter=Obras%2FEstado%20eq%20%27Cear%C3%A1%27"
            "%20and%20Obras%2FCidade%20eq%20%27Fortaleza%27"
        )
        assert unquote(url.split("filter=", 1)[1]) == "Obras/Estado eq 'Ceará' and Obras/Cidade eq 'Fortaleza'"

    def test_question_mark_without_query(self):
        profile = make_profile(FilterLevel.ESTADO, estado="Ceará")
        url = build_filtered_url("https://embed.example/r", profile)
        assert url.startswith("https://embed.example/r?filter=")
        assert decoded_filter(url) == "Obras/Estado eq 'Ceará'"

    def test_ampersand_with_query(self):
        profile = make_profile(FilterLevel.ESTADO, estado="Ceará")
        url = build_filtered_url(BASE, profile)
        assert url.startswith(BASE + "&filter=")
        assert parse_qs(urlsplit(url).query)["reportId"] == ["abc"]

    def test_fragment_stays_at_end(self):
        profile = make_profile(FilterLevel.ESTADO, estado="Ceará")
        url = build_filtered_url("https://embed.example/r?x=1#page2", profile)
        assert url.endswith("#page2")
        assert "&filter=" in url

    def test_deterministic_and_does_not_mutate(self):
        profile = make_profile(FilterLevel.OBRA, estado="Ceará", cidade="Fortaleza", obra="Beira Mar")
        before = profile.model_dump()
        first = build_filtered_url(BASE, profile)
        second = build_filtered_url(BASE, profile)
        assert first == second
        assert profile.model_dump() == before

    @pytest.mark.parametrize("level", list(FilterLevel))
    def test_never_raises_for_any_level(self, level):
        profile = make_profile(level, estado="São Paulo", cidade="Campinas", obra="Parque Taquaral")
        assert build_filtered_url(BASE, profile).startswith(BASE)
