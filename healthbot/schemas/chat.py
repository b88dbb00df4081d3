from pydantic import BaseModel
from typing import List, Optional, Union
from datetime import datetime

from .doctor import DoctorResponse
from .symptom import Complexity

class ChatMessage(BaseModel):
    message: str

class ChatResponse(BaseModel):
    message: str
    complexity: Complexity
    should_see_doctor: bool
    doctors: List[DoctorResponse]
    specialization: Optional[str] = None
    timestamp: datetime

class PrescriptionRequest(BaseModel):
    symptoms: str
    age: Optional[Union[int, float, str]] = None
    weight: Optional[Union[int, float, str]] = None
    allergies: Optional[str] = None
    medications: Optional[str] = None

class PrescriptionResponse(BaseModel):
    prescription: str
    doctor: Optional[DoctorResponse] = None
    complexity: Complexity
    timestamp: datetime
