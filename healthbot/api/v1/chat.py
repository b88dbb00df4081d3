from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...core.exceptions import BadRequestError
from ...api.deps import get_current_user
from ...services.advice_service import AdviceProvider, get_advice_provider
from ...services.chat_service import ChatService
from ...services.doctor_service import DoctorDirectory
from ...services.symptom_classifier import SymptomClassifier, get_symptom_classifier
from ...schemas.chat import ChatMessage, ChatResponse, PrescriptionRequest, PrescriptionResponse

router = APIRouter(
    prefix="/chat",
    tags=["Chat"],
    dependencies=[Depends(get_current_user)]
)

def get_chat_service(
    db: Session = Depends(get_db),
    classifier: SymptomClassifier = Depends(get_symptom_classifier),
    advice: AdviceProvider = Depends(get_advice_provider)
) -> ChatService:
    return ChatService(DoctorDirectory(db), classifier, advice)

@router.post("", response_model=ChatResponse)
async def process_chat_message(
    chat_message: ChatMessage,
    chat_service: ChatService = Depends(get_chat_service)
):
    """Triage a symptom message and recommend doctors when needed."""
    if not chat_message.message.strip():
        raise BadRequestError("Message is required")
    return await chat_service.process_message(chat_message.message)

@router.post("/prescription", response_model=PrescriptionResponse)
async def generate_prescription(
    prescription_request: PrescriptionRequest,
    chat_service: ChatService = Depends(get_chat_service)
):
    if not prescription_request.symptoms.strip():
        raise BadRequestError("Symptoms are required")
    return await chat_service.generate_prescription(prescription_request)
