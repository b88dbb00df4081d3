from datetime import date
from typing import Optional
import logging

import httpx

from ..core.config import settings
from ..schemas.symptom import AdviceResult

logger = logging.getLogger(__name__)

NON_MEDICAL_TRIGGERS = (
    "capital of", "who is", "what is node", "what is javascript", "programming",
    "python", "java ", "c++", "react", "football", "cricket", "movie", "song",
    "weather", "stock", "bitcoin", "crypto", "country", "president",
    "prime minister", "capital city",
)

OUT_OF_SCOPE_MESSAGE = (
    "This question is outside my medical scope. "
    "Please ask about health symptoms, conditions, or care."
)
UNAVAILABLE_MESSAGE = "AI service is currently unavailable. Please consult a healthcare provider."

ADVICE_PROMPT = """You are responding as a licensed clinician. A patient reports: "{query}".

STRICT RESPONSE REQUIREMENTS:
- Provide only clinically relevant information. Do not include any non-medical content, metadata, sources, or system notes.
- Do not diagnose or claim certainty. Use non-diagnostic language ("may be consistent with", "could be due to").
- Be concise, empathetic, and actionable.
- Structure the response with these headings only: Assessment, Self-care, Red flags, Next steps.
- Keep within 1600 characters total.

OUT-OF-SCOPE HANDLING:
If the patient's message is not about health, symptoms, conditions, risks, or medical self-care, respond EXACTLY with: "{out_of_scope}" and nothing else.

Now write the response."""

PRESCRIPTION_PROMPT = """You are a licensed medical professional generating a structured prescription.

PATIENT INFORMATION:
- Symptoms: {symptoms}
- Age: {age}
- Weight: {weight}
- Known Allergies: {allergies}
- Current Medications: {medications}
- Condition Complexity: {complexity}
- Recommended Specialization: {specialization}

REQUIRED OUTPUT FORMAT:
PRESCRIPTION RECOMMENDATION
Generated: {generated}

DIAGNOSIS: [professional assessment based on the symptoms]

MEDICATIONS:
- [Drug Name]: [Dosage & Duration]
  Instructions: [How to take the medication]

RECOMMENDATIONS:
- [Lifestyle and care instructions]

WARNINGS:
- [Warnings and red flags]

FOLLOW-UP:
- [When to revisit or consult a doctor]

DISCLAIMER:
This is an AI-generated recommendation for informational purposes only.

Consider the patient's age, weight, allergies and current medications. For complex
conditions, emphasise the need for specialist consultation. Always include the disclaimer.

Generate the prescription now:"""

FALLBACK_PRESCRIPTION = """PRESCRIPTION RECOMMENDATION
Generated: {generated}

DIAGNOSIS: Based on the symptoms described ({symptoms}), this appears to be a condition requiring medical evaluation.

MEDICATIONS:
- Symptom Management: As directed by healthcare provider
  Instructions: Follow dosage instructions carefully

RECOMMENDATIONS:
- Rest and maintain adequate hydration
- Monitor symptoms closely
- Avoid self-medication without professional guidance

WARNINGS:
- Seek immediate medical attention if symptoms worsen
- Consult healthcare provider for proper diagnosis and treatment

FOLLOW-UP:
- Schedule appointment with healthcare provider within 24-48 hours

DISCLAIMER:
This is an AI-generated recommendation for informational purposes only."""

def is_out_of_scope(query: str) -> bool:
    lowered = query.lower()
    return any(trigger in lowered for trigger in NON_MEDICAL_TRIGGERS)

def prescription_fields(
    symptoms: str,
    age=None,
    weight=None,
    allergies: Optional[str] = None,
    medications: Optional[str] = None,
    complexity: str = "basic",
    specialization: Optional[str] = None,
) -> dict:
    return {
        "symptoms": symptoms.strip(),
        "age": age or "Not specified",
        "weight": weight or "Not specified",
        "allergies": allergies or "None reported",
        "medications": medications or "None reported",
        "complexity": complexity,
        "specialization": specialization or "General Practice",
        "generated": date.today().strftime("%m/%d/%Y"),
    }

class AdviceProvider:
    """Generative advice capability.

    Subclasses implement ``_advise`` and ``_prescribe``; the shared entry
    points screen empty and non-medical queries first.
    """

    async def generate_advice(self, query: str) -> AdviceResult:
        if not query or not query.strip():
            return AdviceResult(success=False, message="Symptom query is required")

        if is_out_of_scope(query):
            return AdviceResult(success=True, message=OUT_OF_SCOPE_MESSAGE)

        return await self._advise(query.strip())

    async def generate_prescription(self, fields: dict) -> str:
        return await self._prescribe(fields)

    async def _advise(self, query: str) -> AdviceResult:
        raise NotImplementedError

    async def _prescribe(self, fields: dict) -> str:
        raise NotImplementedError

class FallbackAdviceProvider(AdviceProvider):
    """Static responses used when no generative service is available."""

    async def _advise(self, query: str) -> AdviceResult:
        return AdviceResult(success=False, message=UNAVAILABLE_MESSAGE)

    async def _prescribe(self, fields: dict) -> str:
        return FALLBACK_PRESCRIPTION.format(**fields)

class GeminiAdviceProvider(AdviceProvider):
    """Google Gemini ``generateContent`` REST client."""

    def __init__(
        self,
        api_key: str,
        model: str = settings.GEMINI_MODEL,
        base_url: str = settings.GEMINI_API_URL,
        timeout: float = settings.GEMINI_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        fallback: Optional[AdviceProvider] = None,
    ):
        self.api_key = api_key
        self.url = f"{base_url}/{model}:generateContent"
        self.timeout = timeout
        self.transport = transport
        self.fallback = fallback or FallbackAdviceProvider()

    async def _advise(self, query: str) -> AdviceResult:
        prompt = ADVICE_PROMPT.format(query=query, out_of_scope=OUT_OF_SCOPE_MESSAGE)
        text = await self._generate(prompt, max_output_tokens=512)
        if text is None:
            return await self.fallback.generate_advice(query)
        return AdviceResult(success=True, message=text)

    async def _prescribe(self, fields: dict) -> str:
        text = await self._generate(PRESCRIPTION_PROMPT.format(**fields), max_output_tokens=1024)
        if text is None:
            return await self.fallback.generate_prescription(fields)
        return text

    async def _generate(self, prompt: str, max_output_tokens: int) -> Optional[str]:
        """Return generated text, or None when the service cannot be reached."""
        payload = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": 0.3,
                "topP": 0.9,
                "topK": 40,
                "maxOutputTokens": max_output_tokens,
            },
        }

        try:
            async with httpx.AsyncClient(transport=self.transport, timeout=self.timeout) as client:
                response = await client.post(self.url, params={"key": self.api_key}, json=payload)
        except httpx.HTTPError as e:
            logger.error(f"Gemini request failed: {str(e)}")
            return None

        if not response.is_success:
            logger.error(f"Gemini API error {response.status_code}: {response.text}")
            return None

        try:
            result = response.json()
        except ValueError:
            logger.error("Gemini API returned a non-JSON body")
            return None

        try:
            candidates = result.get("candidates") or [{}]
            parts = (candidates[0].get("content") or {}).get("parts") or [{}]
            text = parts[0].get("text")
        except (AttributeError, IndexError, KeyError, TypeError):
            logger.error(f"Gemini API returned an unexpected body: {result!r}")
            return None

        if text is not None and not isinstance(text, str):
            logger.error(f"Gemini API returned non-text content: {text!r}")
            return None
        return text or "No response generated."

def build_advice_provider() -> AdviceProvider:
    """Pick the live provider when an API key is configured."""
    if settings.GEMINI_API_KEY:
        return GeminiAdviceProvider(api_key=settings.GEMINI_API_KEY)
    logger.info("GEMINI_API_KEY not set; using fallback advice provider")
    return FallbackAdviceProvider()

advice_provider = build_advice_provider()

def get_advice_provider() -> AdviceProvider:
    """Get the configured advice provider."""
    return advice_provider
