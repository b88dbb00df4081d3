import pytest

from healthbot.schemas.symptom import SymptomEntry
from healthbot.services.spell_checker import (
    SpellChecker, get_spell_checker, levenshtein_distance, similarity
)

@pytest.fixture
def checker():
    return SpellChecker([
        SymptomEntry(symptoms=["fever", "Chills"], treatment="Rest", category="general"),
        SymptomEntry(symptoms=["fervor", "cold"], treatment="Fluids", category="general"),
        SymptomEntry(symptoms=["bold", "fever"], treatment="Sleep", category="general"),
    ])

class TestLevenshtein:

    @pytest.mark.parametrize("a,b,expected", [
        ("kitten", "sitting", 3),
        ("fever", "fver", 1),
        ("", "abc", 3),
        ("abc", "", 3),
        ("same", "same", 0),
    ])
    def test_distance(self, a, b, expected):
        assert levenshtein_distance(a, b) == expected
        assert levenshtein_distance(b, a) == expected

    def test_similarity(self):
        assert similarity("", "") == 100.0
        assert similarity("Fever", "fever") == 100.0
        assert similarity("abc", "xyz") == 0.0
        assert similarity("fevr", "fever") == pytest.approx(80.0)

class TestSuggestions:

    def test_symptoms_are_lowercased_and_unique(self, checker):
        assert checker.all_symptoms == ["fever", "chills", "fervor", "cold", "bold"]

    def test_containment_is_exact_match(self, checker):
        result = checker.find_suggestions("fev")
        assert result.has_exact_match is True
        assert result.exact_matches == ["fever"]
        assert result.suggestions == []

    def test_query_containing_symptom_is_exact_match(self, checker):
        result = checker.find_suggestions("a bad cold today")
        assert result.has_exact_match is True
        assert "cold" in result.exact_matches

    def test_ranked_by_similarity(self, checker):
        result = checker.find_suggestions("fevar")
        assert result.has_exact_match is False
        assert result.suggestions == ["fever", "fervor"]
        assert result.original_query == "fevar"

    def test_ties_keep_dataset_order(self, checker):
        result = checker.find_suggestions("gold")
        assert result.suggestions[:2] == ["cold", "bold"]

    def test_threshold_and_limit(self, checker):
        assert checker.find_suggestions("fevar", threshold=70).suggestions == ["fever"]
        assert checker.find_suggestions("fevar", max_suggestions=1).suggestions == ["fever"]
        assert checker.find_suggestions("zzzzzz").suggestions == []

class TestSearch:

    def test_search_matches_entries(self, checker):
        matches = checker.search("FEV")
        assert [entry.treatment for entry in matches] == ["Rest", "Sleep"]

    def test_search_with_exact_hits(self, checker):
        result = checker.search_with_spell_check("chill")
        assert [entry.treatment for entry in result.matches] == ["Rest"]
        assert result.spell_suggestions is None
        assert result.has_spelling_suggestions is False

    def test_search_falls_back_to_suggestions(self, checker):
        result = checker.search_with_spell_check("fevar")
        assert result.has_spelling_suggestions is True
        assert result.spell_suggestions == ["fever", "fervor"]
        # Entries are not repeated across suggestions
        assert [entry.treatment for entry in result.matches] == ["Rest", "Sleep", "Fluids"]

    def test_search_without_any_match(self, checker):
        result = checker.search_with_spell_check("qqqqqqq")
        assert result.matches == []
        assert result.spell_suggestions == []
        assert result.has_spelling_suggestions is False

    def test_packaged_dataset(self):
        spell_checker = get_spell_checker()
        assert len(spell_checker.entries) == 20
        assert spell_checker.find_suggestions("fevr").suggestions[0] == "fever"
