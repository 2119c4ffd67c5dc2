from typing import TYPE_CHECKING, Any, Callable, Union

from socketchat.schemas.request import EventRequestModel

if TYPE_CHECKING:
    from socketchat.managers.broadcast_router import BroadcastRouter

# Type definitions
JsonSchemaType = dict[
    str, Union[str, int, float, bool, list[Any], "JsonSchemaType"]
]
ValidatorType = Callable[[EventRequestModel, JsonSchemaType], None]
HandlerCallableType = Callable[
    ["BroadcastRouter", str, dict[str, Any]], None
]
