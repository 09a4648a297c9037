"""
Domain model for stored messages.

Field aliases match the persisted and wire format ({_id, text, createdAt}).
For HTTP request/response envelopes, see schemas.py.
"""

from pydantic import BaseModel, Field


class Message(BaseModel):
    """
    A single message on the board.

    Immutable once created. Unknown keys found in stored records are kept so
    that rewriting the collection does not drop them.
    """
    id: str = Field(..., alias="_id", min_length=1, description="Unique message identifier")
    text: str = Field(..., description="Trimmed message text")
    created_at: str = Field(..., alias="createdAt", description="Creation time (ISO-8601 UTC)")

    model_config = {
        "populate_by_name": True,
        "frozen": True,
        "extra": "allow",
        "json_schema_extra": {
            "examples": [
                {
                    "_id": "1736935200000",
                    "text": "Hello",
                    "createdAt": "2025-01-15T10:00:00.000Z",
                }
            ]
        },
    }

    def to_record(self) -> dict:
        """Serialize to the on-disk / wire representation."""
        return self.model_dump(by_alias=True)
