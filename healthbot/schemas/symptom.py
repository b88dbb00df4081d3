from pydantic import BaseModel, Field, model_validator
from typing import List, Literal, Optional

from .doctor import DoctorResponse

Complexity = Literal["basic", "complex"]

class SymptomEntry(BaseModel):
    """One record of the static symptom dataset."""
    symptoms: List[str] = Field(..., min_length=1)
    treatment: str
    complexity: Complexity = "basic"
    category: str
    specialization: Optional[str] = None

    @model_validator(mode="after")
    def specialization_required_for_complex(self):
        if self.complexity == "complex" and not self.specialization:
            raise ValueError("specialization is required for complex symptoms")
        return self

class SymptomClassification(BaseModel):
    complexity: Complexity
    is_complex: bool
    is_basic: bool

class SymptomAssessment(BaseModel):
    complexity: Complexity
    message: str
    doctors: List[DoctorResponse] = []
    specialization: Optional[str] = None
    should_see_doctor: bool
    error: bool = False

class SpellSuggestions(BaseModel):
    has_exact_match: bool
    exact_matches: List[str]
    suggestions: List[str]
    original_query: str

class SymptomSearchResult(BaseModel):
    matches: List[SymptomEntry]
    spell_suggestions: Optional[List[str]] = None
    has_spelling_suggestions: bool
    original_query: str

class AdviceRequest(BaseModel):
    symptom_query: str

class AdviceResult(BaseModel):
    success: bool
    message: str
