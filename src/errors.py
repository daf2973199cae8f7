"""
Error taxonomy for ReplyDesk.

Every failure surfaced by the lifecycle, generation and storage layers
derives from ReplyDeskError so a serving layer can map them in one place.
"""


class ReplyDeskError(Exception):
    """Base exception for ReplyDesk errors."""
    pass


class ValidationError(ReplyDeskError):
    """Input rejected: empty content, over the character limit, unknown enum value."""
    pass


class InvalidState(ReplyDeskError):
    """Operation not allowed in the record's current state. Caller should refresh."""
    pass


class AlreadyPosted(InvalidState):
    """The response was already marked posted. Safe to ignore."""
    pass


class GenerationFailed(ReplyDeskError):
    """The external generation call failed or returned unusable output."""

    def __init__(self, provider_message: str):
        self.provider_message = provider_message
        super().__init__(f"Response generation failed: {provider_message}")


class NotFound(ReplyDeskError):
    """A review, response, template or restaurant id does not exist."""

    def __init__(self, entity: str, entity_id: str):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} not found: {entity_id}")
