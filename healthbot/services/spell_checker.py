from functools import lru_cache
from typing import List, Sequence

from ..schemas.symptom import SpellSuggestions, SymptomEntry, SymptomSearchResult
from .symptom_dataset import get_symptom_entries

def levenshtein_distance(a: str, b: str) -> int:
    """Edit distance with unit cost for insertion, deletion and substitution."""
    if not a:
        return len(b)
    if not b:
        return len(a)

    matrix = [[0] * (len(a) + 1) for _ in range(len(b) + 1)]
    for i in range(len(b) + 1):
        matrix[i][0] = i
    for j in range(len(a) + 1):
        matrix[0][j] = j

    for i in range(1, len(b) + 1):
        for j in range(1, len(a) + 1):
            if b[i - 1] == a[j - 1]:
                matrix[i][j] = matrix[i - 1][j - 1]
            else:
                matrix[i][j] = min(
                    matrix[i - 1][j - 1] + 1,  # substitution
                    matrix[i][j - 1] + 1,      # insertion
                    matrix[i - 1][j] + 1,      # deletion
                )

    return matrix[len(b)][len(a)]

def similarity(a: str, b: str) -> float:
    """Similarity percentage (0-100) derived from the edit distance."""
    max_length = max(len(a), len(b))
    if max_length == 0:
        return 100.0
    distance = levenshtein_distance(a.lower(), b.lower())
    return (max_length - distance) / max_length * 100

class SpellChecker:
    """Symptom lookup with Levenshtein-based spelling suggestions."""

    def __init__(self, entries: Sequence[SymptomEntry]):
        self.entries = list(entries)

        self.all_symptoms: List[str] = []
        for entry in self.entries:
            for symptom in entry.symptoms:
                symptom = symptom.lower()
                if symptom not in self.all_symptoms:
                    self.all_symptoms.append(symptom)

    def find_suggestions(self, query: str, threshold: float = 60, max_suggestions: int = 5) -> SpellSuggestions:
        query_lower = query.lower().strip()

        # Containment in either direction counts as an exact hit
        exact_matches = [
            symptom for symptom in self.all_symptoms
            if query_lower in symptom or symptom in query_lower
        ]
        if exact_matches:
            return SpellSuggestions(
                has_exact_match=True,
                exact_matches=exact_matches[:max_suggestions],
                suggestions=[],
                original_query=query,
            )

        scored = []
        for symptom in self.all_symptoms:
            score = similarity(query_lower, symptom)
            if score >= threshold:
                scored.append((score, levenshtein_distance(query_lower, symptom), symptom))

        # Highest similarity first, smaller edit distance breaks ties
        scored.sort(key=lambda item: (-item[0], item[1]))

        return SpellSuggestions(
            has_exact_match=False,
            exact_matches=[],
            suggestions=[symptom for _, _, symptom in scored[:max_suggestions]],
            original_query=query,
        )

    def search(self, term: str) -> List[SymptomEntry]:
        """Entries having at least one symptom that contains the term."""
        term = term.lower().strip()
        return [
            entry for entry in self.entries
            if any(term in symptom.lower() for symptom in entry.symptoms)
        ]

    def search_with_spell_check(self, query: str) -> SymptomSearchResult:
        exact_matches = self.search(query)
        if exact_matches:
            return SymptomSearchResult(
                matches=exact_matches,
                spell_suggestions=None,
                has_spelling_suggestions=False,
                original_query=query,
            )

        spell_check = self.find_suggestions(query, 60, 3)
        if not spell_check.suggestions:
            return SymptomSearchResult(
                matches=[],
                spell_suggestions=[],
                has_spelling_suggestions=False,
                original_query=query,
            )

        unique_matches: List[SymptomEntry] = []
        for suggestion in spell_check.suggestions:
            for entry in self.search(suggestion):
                if entry not in unique_matches:
                    unique_matches.append(entry)

        return SymptomSearchResult(
            matches=unique_matches,
            spell_suggestions=spell_check.suggestions,
            has_spelling_suggestions=True,
            original_query=query,
        )

@lru_cache(maxsize=1)
def get_spell_checker() -> SpellChecker:
    """Spell checker over the packaged symptom dataset."""
    return SpellChecker(get_symptom_entries())
