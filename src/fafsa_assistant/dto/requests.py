"""Request DTOs for API endpoints."""

from pydantic import BaseModel, Field


class SendMessageRequest(BaseModel):
    """Request DTO for sending a chat message.

    Length and emptiness are checked by the service so that invalid input
    produces the same classified Validation error on every surface.
    """

    content: str = Field(..., description="The student's question")
    user_id: str | None = Field(
        None,
        description="Caller identity (omit or use a 'guest_' prefix for anonymous sessions)",
    )
    conversation_id: str | None = Field(
        None,
        description="Existing conversation to continue (created for signed-in users when omitted)",
    )


class ValidateMessageRequest(BaseModel):
    """Request DTO for validating a message without sending it."""

    content: str = Field(..., description="The text to validate")
