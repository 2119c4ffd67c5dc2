import os
import pkgutil
from importlib import import_module
from typing import TYPE_CHECKING

from fastapi import APIRouter

from socketchat.exceptions import UnknownEventError
from socketchat.logging import logger
from socketchat.schemas.generic_typing import (
    HandlerCallableType,
    JsonSchemaType,
    ValidatorType,
)
from socketchat.schemas.request import EventRequestModel

if TYPE_CHECKING:
    from socketchat.managers.broadcast_router import BroadcastRouter


class EventRouter:
    """
    Router for inbound WebSocket client events.

    Maps event names to handler functions and validates each event's payload
    before the handler runs. Handlers are plain synchronous functions that
    receive the broadcast router, the sender's session ID and the payload.
    """

    def __init__(self):
        """
        Initializes the `EventRouter` class with empty dictionaries to store registered handlers and validators.

        The `handlers_registry` dictionary maps event names to their handler functions (HandlerCallableType).
        The `validators_registry` dictionary maps event names to a tuple containing the JSON schema (JsonSchemaType) and a validator callback function (ValidatorType) for that event.
        """
        self.handlers_registry: dict[str, HandlerCallableType] = {}
        self.validators_registry: dict[
            str, tuple[JsonSchemaType | None, ValidatorType | None]
        ] = {}

    def register(
        self,
        *events: str,
        json_schema: JsonSchemaType | None = None,
        validator_callback: ValidatorType | None = None,
    ):
        """
        Decorator function to register a handler and validator for one or more event names.

        Args:
            *events (str): One or more event names to register the handler for.
            json_schema (JsonSchemaType | None): An optional JSON schema to validate the event payload against.
            validator_callback (ValidatorType | None): An optional callback that validates the payload against the schema.

        Returns:
            A decorator function that can be used to register a handler function.

        Raises:
            ValueError: If a different handler is already registered for one of the events.
        """

        def decorator(func: HandlerCallableType):
            for event in events:
                # Idempotent for module reloads
                if event in self.handlers_registry:
                    if self.handlers_registry[event] != func:
                        raise ValueError(
                            f"Different handler already registered for event {event}"
                        )
                    continue

                self.handlers_registry[event] = func
                self.validators_registry[event] = (
                    json_schema,
                    validator_callback,
                )

                logger.info(
                    f"Register {func.__module__}.{func.__name__} for event: {event}"
                )

            return func

        return decorator

    def has_handler(self, event: str) -> bool:
        """Check if a handler is registered for the given event name."""
        return event in self.handlers_registry

    def _validate_request(self, request: EventRequestModel) -> None:
        json_schema, validator_func = self.validators_registry[request.event]

        if validator_func is None or json_schema is None:
            return

        validator_func(request, json_schema)

    def handle_event(
        self,
        broadcast_router: "BroadcastRouter",
        session_id: str,
        request: EventRequestModel,
    ) -> None:
        """
        Validate an inbound event and run its handler.

        Args:
            broadcast_router: Owner of the registry and the connections.
            session_id: The sender's session ID.
            request: The decoded inbound event.

        Raises:
            UnknownEventError: No handler is registered for the event.
            MalformedPayloadError: The payload failed validation.
        """
        if not self.has_handler(request.event):
            raise UnknownEventError(request.event)

        self._validate_request(request)

        handler = self.handlers_registry[request.event]
        handler(broadcast_router, session_id, request.data)


event_router = EventRouter()


# Track registered modules to prevent duplicate logging
_registered_http_modules: set[str] = set()
_registered_ws_modules: set[str] = set()


def collect_subrouters() -> APIRouter:
    """
    Collects and registers all HTTP and WebSocket routers for the application.

    Iterates through the `api/http` and `api/ws/consumers` packages, imports
    each module and adds its `router` to the main `APIRouter` instance.
    """
    main_router: APIRouter = APIRouter()

    package_dir = os.path.dirname(__file__)
    package_name = os.path.basename(package_dir)

    for _, module, _ in pkgutil.iter_modules([f"{package_dir}/api/http"]):
        api = import_module(f".{module}", package=f"{package_name}.api.http")
        main_router.include_router(api.router)

        if module not in _registered_http_modules:
            logger.info(f'Register "{module}" api')
            _registered_http_modules.add(module)

    for _, module, _ in pkgutil.iter_modules(
        [f"{package_dir}/api/ws/consumers"]
    ):
        ws_consumer = import_module(
            f".{module}", package=f"{package_name}.api.ws.consumers"
        )
        main_router.include_router(ws_consumer.router)

        if module not in _registered_ws_modules:
            logger.info(f'Register "{module}" websocket consumer')
            _registered_ws_modules.add(module)

    return main_router
