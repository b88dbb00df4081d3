from fastapi import APIRouter, Depends
from typing import List, Optional

from ...core.exceptions import BadRequestError, NotFoundError
from ...services.advice_service import AdviceProvider, get_advice_provider
from ...services.spell_checker import SpellChecker, get_spell_checker
from ...schemas.symptom import (
    AdviceRequest, AdviceResult, SpellSuggestions, SymptomEntry, SymptomSearchResult
)

router = APIRouter(prefix="/symptoms", tags=["Symptoms"])

def _required_query(query: Optional[str]) -> str:
    if not query or not query.strip():
        raise BadRequestError("Query parameter is required")
    return query

@router.get("", response_model=List[SymptomEntry])
async def list_symptoms(spell_checker: SpellChecker = Depends(get_spell_checker)):
    """The full symptom dataset."""
    return spell_checker.entries

@router.get("/search", response_model=SymptomSearchResult)
async def search_symptoms(
    query: Optional[str] = None,
    spell_checker: SpellChecker = Depends(get_spell_checker)
):
    """Search symptoms; falls back to spelling suggestions when nothing matches."""
    return spell_checker.search_with_spell_check(_required_query(query))

@router.get("/suggestions", response_model=SpellSuggestions)
async def symptom_suggestions(
    query: Optional[str] = None,
    spell_checker: SpellChecker = Depends(get_spell_checker)
):
    return spell_checker.find_suggestions(_required_query(query), 60, 5)

@router.get("/advice/{symptom}", response_model=SymptomEntry)
async def symptom_advice(
    symptom: str,
    spell_checker: SpellChecker = Depends(get_spell_checker)
):
    """Treatment advice from the first dataset entry mentioning the symptom."""
    matches = spell_checker.search(symptom)
    if not matches:
        raise NotFoundError("Symptom not found")
    return matches[0]

@router.post("/advice", response_model=AdviceResult)
async def generate_symptom_advice(
    advice_request: AdviceRequest,
    advice: AdviceProvider = Depends(get_advice_provider)
):
    """Generative advice for a free-text symptom description."""
    if not advice_request.symptom_query.strip():
        raise BadRequestError("symptom_query is required")
    return await advice.generate_advice(advice_request.symptom_query)
