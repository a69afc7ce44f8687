from ._serialization_core import (
    register_component,
    registered_markers,
    read_component,
    parse_proto_line,
    init_component,
    component_to_config,
    component_from_config,
)
from ._serialization_weights import extract_state_payload, load_state_payload_

__all__ = [
    register_component.__name__,
    registered_markers.__name__,
    read_component.__name__,
    parse_proto_line.__name__,
    init_component.__name__,
    component_to_config.__name__,
    component_from_config.__name__,
    extract_state_payload.__name__,
    load_state_payload_.__name__,
]
