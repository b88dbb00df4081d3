from datetime import datetime
import logging

from ..schemas.chat import ChatResponse, PrescriptionRequest, PrescriptionResponse
from .advice_service import AdviceProvider, prescription_fields
from .doctor_service import DoctorDirectory
from .symptom_classifier import SymptomClassifier

logger = logging.getLogger(__name__)

class ChatService:
    def __init__(
        self,
        directory: DoctorDirectory,
        classifier: SymptomClassifier,
        advice: AdviceProvider,
    ):
        self.directory = directory
        self.classifier = classifier
        self.advice = advice

    async def process_message(self, message: str) -> ChatResponse:
        """Answer a symptom message with advice, complexity and matching doctors."""
        advice = await self.advice.generate_advice(message)
        assessment = self.classifier.process_symptom(message, self.directory)

        if advice.success:
            reply = advice.message
            if assessment.complexity == "complex" and assessment.doctors:
                reply += (
                    f"\n\n**Doctor Recommendation:** Based on your symptoms, I recommend "
                    f"consulting with a {assessment.specialization}. Here are some available doctors:"
                )
        else:
            logger.info("Advice service unavailable, using classifier message")
            reply = assessment.message

        return ChatResponse(
            message=reply,
            complexity=assessment.complexity,
            should_see_doctor=assessment.should_see_doctor,
            doctors=assessment.doctors,
            specialization=assessment.specialization,
            timestamp=datetime.utcnow(),
        )

    async def generate_prescription(self, request: PrescriptionRequest) -> PrescriptionResponse:
        assessment = self.classifier.process_symptom(request.symptoms, self.directory)

        if assessment.complexity == "complex" and assessment.doctors:
            doctor = assessment.doctors[0]
        else:
            doctor = self.directory.find_general_practitioner()

        fields = prescription_fields(
            symptoms=request.symptoms,
            age=request.age,
            weight=request.weight,
            allergies=request.allergies,
            medications=request.medications,
            complexity=assessment.complexity,
            specialization=assessment.specialization,
        )
        prescription = await self.advice.generate_prescription(fields)

        return PrescriptionResponse(
            prescription=prescription,
            doctor=doctor,
            complexity=assessment.complexity,
            timestamp=datetime.utcnow(),
        )
