import logging
from typing import List, Protocol, Sequence, Tuple

from ..schemas.doctor import DoctorResponse
from ..schemas.symptom import SymptomAssessment, SymptomClassification

logger = logging.getLogger(__name__)

# Symptoms that require a doctor consultation
COMPLEX_SYMPTOMS: Tuple[str, ...] = (
    "cancer", "tumor", "stroke", "heart attack", "diabetes", "hypertension",
    "pneumonia", "tuberculosis", "hepatitis", "kidney failure", "liver disease",
    "asthma", "epilepsy", "depression", "anxiety disorder", "bipolar",
    "arthritis", "osteoporosis", "fibromyalgia", "lupus", "multiple sclerosis",
    "alzheimer", "dementia", "parkinson", "migraine", "seizure",
    "blood clot", "aneurysm", "appendicitis", "gallstones", "kidney stones",
    "ulcer", "crohn", "colitis", "thyroid", "adrenal", "pituitary",
    "autoimmune", "chronic fatigue", "fibrosis", "cirrhosis", "jaundice",
    "anemia", "leukemia", "lymphoma", "sarcoma", "melanoma",
    "pregnancy complications", "miscarriage", "ectopic pregnancy",
    "mental health crisis", "suicidal thoughts", "panic attack",
    "severe pain", "unexplained weight loss", "unexplained weight gain",
    "chronic cough", "blood in urine", "blood in stool", "chest pain",
    "severe headache", "vision loss", "hearing loss", "paralysis",
    "numbness", "tingling", "memory loss", "confusion", "delirium",
)

# Symptoms that can usually be handled with self-care
BASIC_SYMPTOMS: Tuple[str, ...] = (
    "fever", "headache", "cold", "cough", "sore throat", "stomach pain",
    "diarrhea", "constipation", "vomiting", "nausea", "dizziness",
    "fatigue", "tiredness", "weakness", "insomnia", "stress",
    "minor cuts", "bruises", "sunburn", "allergies", "runny nose",
    "sneezing", "itchy eyes", "dry skin", "acne", "dandruff",
    "muscle ache", "back pain", "neck pain", "joint pain",
    "indigestion", "heartburn", "gas", "bloating", "hiccups",
    "dehydration", "hunger", "thirst", "sleepiness", "restlessness",
)

# Evaluated in order; the first keyword contained in the text wins
SPECIALIZATION_MAP: Tuple[Tuple[str, str], ...] = (
    ("cancer", "Oncologist"),
    ("tumor", "Oncologist"),
    ("heart", "Cardiologist"),
    ("stroke", "Neurologist"),
    ("diabetes", "Endocrinologist"),
    ("hypertension", "Cardiologist"),
    ("lung", "Pulmonologist"),
    ("pneumonia", "Pulmonologist"),
    ("tuberculosis", "Pulmonologist"),
    ("liver", "Hepatologist"),
    ("kidney", "Nephrologist"),
    ("asthma", "Pulmonologist"),
    ("epilepsy", "Neurologist"),
    ("depression", "Psychiatrist"),
    ("anxiety", "Psychiatrist"),
    ("mental health", "Psychiatrist"),
    ("arthritis", "Rheumatologist"),
    ("bone", "Orthopedist"),
    ("joint", "Orthopedist"),
    ("skin", "Dermatologist"),
    ("eye", "Ophthalmologist"),
    ("ear", "ENT Specialist"),
    ("throat", "ENT Specialist"),
    ("nose", "ENT Specialist"),
    ("stomach", "Gastroenterologist"),
    ("digestive", "Gastroenterologist"),
    ("thyroid", "Endocrinologist"),
    ("hormone", "Endocrinologist"),
    ("blood", "Hematologist"),
    ("immune", "Immunologist"),
    ("pregnancy", "Gynecologist"),
    ("women", "Gynecologist"),
    ("men", "Urologist"),
    ("child", "Pediatrician"),
    ("baby", "Pediatrician"),
)

DEFAULT_SPECIALIZATION = "General Practitioner"
MAX_RECOMMENDED_DOCTORS = 3

COMPLEX_MESSAGE = (
    "Based on your symptoms, I recommend consulting with a {specialization}. "
    "This appears to be a complex medical condition that requires professional evaluation."
)
BASIC_MESSAGE = (
    "This appears to be a common symptom that can often be managed with self-care. "
    "However, if symptoms persist or worsen, please consult a healthcare provider."
)
FALLBACK_MESSAGE = (
    "I understand you have health concerns. For the best care, "
    "I recommend consulting with a healthcare provider."
)

class DoctorLookup(Protocol):
    def find_by_specialization(self, specialization: str, limit: int) -> List[DoctorResponse]:
        ...

class SymptomClassifier:
    """Keyword-based triage of free-text symptom descriptions."""

    def __init__(
        self,
        complex_keywords: Sequence[str] = COMPLEX_SYMPTOMS,
        basic_keywords: Sequence[str] = BASIC_SYMPTOMS,
        specialization_map: Sequence[Tuple[str, str]] = SPECIALIZATION_MAP,
    ):
        self.complex_keywords = tuple(k.lower() for k in complex_keywords)
        self.basic_keywords = tuple(k.lower() for k in basic_keywords)
        self.specialization_map = tuple((k.lower(), s) for k, s in specialization_map)

    def classify(self, text: str) -> SymptomClassification:
        text = text.lower()
        is_complex = any(keyword in text for keyword in self.complex_keywords)
        is_basic = any(keyword in text for keyword in self.basic_keywords)

        # Complex wins over basic; no match at all defaults to basic
        return SymptomClassification(
            complexity="complex" if is_complex else "basic",
            is_complex=is_complex,
            is_basic=is_basic,
        )

    def get_specialization(self, text: str) -> str:
        text = text.lower()
        for keyword, specialization in self.specialization_map:
            if keyword in text:
                return specialization
        return DEFAULT_SPECIALIZATION

    def process_symptom(self, text: str, directory: DoctorLookup) -> SymptomAssessment:
        """Classify text and recommend doctors; falls back to a safe answer on any error."""
        try:
            classification = self.classify(text)

            if classification.complexity == "complex":
                specialization = self.get_specialization(text)
                doctors = directory.find_by_specialization(
                    specialization, limit=MAX_RECOMMENDED_DOCTORS
                )
                return SymptomAssessment(
                    complexity="complex",
                    message=COMPLEX_MESSAGE.format(specialization=specialization),
                    doctors=list(doctors)[:MAX_RECOMMENDED_DOCTORS],
                    specialization=specialization,
                    should_see_doctor=True,
                )

            return SymptomAssessment(
                complexity="basic",
                message=BASIC_MESSAGE,
                doctors=[],
                should_see_doctor=False,
            )
        except Exception:
            logger.exception("Error processing symptom")
            return SymptomAssessment(
                complexity="basic",
                message=FALLBACK_MESSAGE,
                doctors=[],
                should_see_doctor=True,
                error=True,
            )

symptom_classifier = SymptomClassifier()

def get_symptom_classifier() -> SymptomClassifier:
    """Get the default symptom classifier."""
    return symptom_classifier
