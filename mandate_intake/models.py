from pydantic import AliasChoices, BaseModel, Field
from typing import Optional


class AmountsPayload(BaseModel):
    totalAssets: float
    fee: float
    netAmount: float


class MandateSubmission(BaseModel):
    # Older forms post the identifier as "uuid"
    identifier: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("identifier", "uuid")
    )
    encryptedData: Optional[str] = None
    signature: Optional[str] = None
    amounts: Optional[AmountsPayload] = None


class ContactMessage(BaseModel):
    nom: Optional[str] = None
    email: Optional[str] = None
    telephone: Optional[str] = None
    message: Optional[str] = None


class SubmissionAccepted(BaseModel):
    success: bool = True
    message: str
    identifier: Optional[str] = None
