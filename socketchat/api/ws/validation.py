from jsonschema import ValidationError, validate

from socketchat.exceptions import MalformedPayloadError
from socketchat.logging import logger
from socketchat.schemas.generic_typing import JsonSchemaType
from socketchat.schemas.request import EventRequestModel


def validator(request: EventRequestModel, schema: JsonSchemaType) -> None:
    """
    Validates the data field of an EventRequestModel against the provided JSON schema.

    Args:
        request (EventRequestModel): The inbound event to validate.
        schema (JsonSchemaType): The JSON schema to validate the event payload against.

    Raises:
        MalformedPayloadError: If the payload does not match the schema.
    """
    try:
        validate(request.data, schema)  # JSON schema validation
    except ValidationError as ex:
        logger.debug(f"Invalid data for event {request.event}: \n{ex}")
        raise MalformedPayloadError(
            f"Invalid data for {request.event}: {ex.message}",
            event=request.event,
        ) from ex
