"""Schemas for the chat endpoint."""

from pydantic import BaseModel, Field


class ConversationMessage(BaseModel):
    """One entry of the client-side conversation log, in conversation order."""

    role: str = Field(..., description="user, assistant, or any other role (e.g. system); only user/assistant reach the agent.")
    content: str = Field("", description="Message text.")


class ChatRequest(BaseModel):
    """Request body for POST /api/chat. The last message is the user's current turn."""

    messages: list[ConversationMessage] = Field(default_factory=list, description="Full conversation so far, oldest first.")
    show_intermediate_steps: bool = Field(
        False,
        description="Return one JSON body with output and sources instead of streaming the answer.",
    )

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "messages": [
                        {"role": "user", "content": "What is Medicare Part D?"},
                        {"role": "assistant", "content": "It's the drug coverage part of Medicare."},
                        {"role": "user", "content": "When can I enroll?"},
                    ]
                }
            ]
        }
    }


class ChatResponse(BaseModel):
    """Response for POST /api/chat when show_intermediate_steps is set."""

    output: str = Field(..., description="Final answer from the agent.")
    sources: list[str] = Field(default_factory=list, description="URLs of the knowledge-base passages the agent retrieved.")
    no_streaming_response: bool = Field(True, alias="_no_streaming_response_")

    model_config = {"populate_by_name": True}


class ErrorResponse(BaseModel):
    """Body of every 4xx/5xx response."""

    error: str
