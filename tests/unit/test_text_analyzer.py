"""Tests for the lexical transcript analyzer."""

import pytest

from discovery.domain.models.extraction import (
    ConfidenceLevel,
    ExtractionCategory,
    ExtractionField,
    SuggestionPriority,
    SuggestionType,
)
from discovery.services.text_analyzer import analyze_transcript


class TestExtractions:
    """KPI and budget extraction."""

    def test_ttd_scenario(self):
        """A TTD sentence yields exactly one high-confidence ttd_current."""
        analysis = analyze_transcript("Il TTD attuale è di 45 giorni")

        assert len(analysis.extractions) == 1
        extraction = analysis.extractions[0]
        assert extraction.field == ExtractionField.TTD_CURRENT
        assert extraction.value == "45"
        assert extraction.confidence == ConfidenceLevel.HIGH
        assert extraction.category == ExtractionCategory.KPI
        assert "45 giorni" in extraction.quote

    @pytest.mark.parametrize("n", [1, 7, 45, 120])
    def test_ttd_value_is_the_number(self, n):
        analysis = analyze_transcript(f"Ci vogliono {n} giorni per chiudere")

        ttd = [e for e in analysis.extractions if e.field == ExtractionField.TTD_CURRENT]
        assert [e.value for e in ttd] == [str(n)]
        assert ttd[0].confidence == ConfidenceLevel.HIGH

    def test_ttd_english_unit(self):
        analysis = analyze_transcript("It takes 30 days on average")

        assert analysis.extractions[0].field == ExtractionField.TTD_CURRENT
        assert analysis.extractions[0].value == "30"

    def test_projects_medium_confidence(self):
        analysis = analyze_transcript("Vorremmo arrivare a 25 progetti")

        assert len(analysis.extractions) == 1
        assert analysis.extractions[0].field == ExtractionField.TARGET_PROJECTS
        assert analysis.extractions[0].value == "25"
        assert analysis.extractions[0].confidence == ConfidenceLevel.MEDIUM

    def test_conversion_comma_becomes_dot(self):
        analysis = analyze_transcript("La conversione è al 12,5%")

        assert analysis.extractions[0].field == ExtractionField.CONVERSION_RATE
        assert analysis.extractions[0].value == "12.5"

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("Il budget è 50k", "50000"),
            ("Possiamo spendere 30 mila", "30000"),
            ("Costa 200 euro", "200"),
            ("Costa 500€", "500"),
        ],
    )
    def test_budget_units(self, text, expected):
        analysis = analyze_transcript(text)

        budget = [e for e in analysis.extractions if e.field == ExtractionField.BUDGET]
        assert len(budget) == 1
        assert budget[0].value == expected
        assert budget[0].category == ExtractionCategory.ECONOMIC
        assert budget[0].confidence == ConfidenceLevel.MEDIUM

    def test_one_extraction_per_field_in_check_order(self):
        """Budget mentioned first still comes after TTD in the result."""
        analysis = analyze_transcript("Con 50k di budget facciamo 10 progetti in 40 giorni")

        assert [e.field for e in analysis.extractions] == [
            ExtractionField.TTD_CURRENT,
            ExtractionField.TARGET_PROJECTS,
            ExtractionField.BUDGET,
        ]

    def test_plain_text_yields_nothing(self):
        assert analyze_transcript("Buongiorno a tutti, iniziamo").is_empty


class TestSuggestionsAndUncertainties:
    def test_two_countries_two_market_suggestions(self):
        analysis = analyze_transcript("Stiamo espandendo in Brasile e Argentina")

        markets = [s for s in analysis.suggestions if s.type == SuggestionType.MARKET]
        assert len(markets) == 2
        assert "Brasile" in markets[0].content
        assert "Argentina" in markets[1].content
        assert all(s.priority == SuggestionPriority.MEDIUM for s in markets)

    def test_english_synonym_maps_to_country(self):
        analysis = analyze_transcript("We are looking at Mexico next year")

        assert analysis.suggestions[0].content.startswith("Menzionato Messico")

    def test_vague_marker_uncertainty(self):
        analysis = analyze_transcript("Penso che siano tanti")

        assert len(analysis.uncertainties) == 1
        uncertainty = analysis.uncertainties[0]
        assert uncertainty.marker == "penso"
        assert uncertainty.reason == 'Usato "penso"'
        assert uncertainty.topic == "Dato approssimativo"

    def test_decision_marker_high_priority(self):
        analysis = analyze_transcript("Abbiamo deciso di partire dal Messico")

        decisions = [s for s in analysis.suggestions if s.type == SuggestionType.DECISION]
        assert len(decisions) == 1
        assert decisions[0].priority == SuggestionPriority.HIGH
        assert "deciso di partire" in decisions[0].content

    def test_all_categories_coexist(self):
        """Decision, market, uncertainty and projects from a single chunk."""
        analysis = analyze_transcript("Procediamo con 8 progetti in Malta, forse")

        decisions = [s for s in analysis.suggestions if s.type == SuggestionType.DECISION]
        markets = [s for s in analysis.suggestions if s.type == SuggestionType.MARKET]
        assert len(decisions) == 1
        assert decisions[0].priority == SuggestionPriority.HIGH
        assert len(markets) == 1
        assert "Malta" in markets[0].content
        assert [u.marker for u in analysis.uncertainties] == ["forse"]
        assert len(analysis.extractions) == 1
        assert analysis.extractions[0].field == ExtractionField.TARGET_PROJECTS
        assert analysis.extractions[0].value == "8"
        assert analysis.extractions[0].confidence == ConfidenceLevel.MEDIUM

    def test_deterministic(self):
        text = "Procediamo con 8 progetti in Malta, forse"

        assert analyze_transcript(text) == analyze_transcript(text)
