"""Type descriptors, policy and the nullable type transformation."""

from .policy import DEFAULT_POLICY as DEFAULT_POLICY
from .policy import PAYLOAD_DECODING as PAYLOAD_DECODING
from .policy import Option as Option
from .policy import Policy as Policy
from .policy import build_policy as build_policy
from .policy import payload_decoding as payload_decoding
from .policy import with_array_elements as with_array_elements
from .policy import with_bytes_as_text as with_bytes_as_text
from .policy import with_list_elements as with_list_elements
from .policy import with_map_keys as with_map_keys
from .policy import with_map_values as with_map_values
from .reflect import DescriptionError as DescriptionError
from .reflect import describe as describe
from .reflect import describe_value as describe_value
from .reflect import to_python as to_python
from .reflect import type_of as type_of
from .reflect import zero_value as zero_value
from .transform import nullified_type as nullified_type
from .transform import nullify as nullify
from .transform import transform as transform
from .types import *
from .types import __all__ as _types_all

__all__ = [
    *_types_all,
    "DEFAULT_POLICY",
    "PAYLOAD_DECODING",
    "DescriptionError",
    "Option",
    "Policy",
    "build_policy",
    "describe",
    "describe_value",
    "nullified_type",
    "nullify",
    "payload_decoding",
    "to_python",
    "transform",
    "type_of",
    "with_array_elements",
    "with_bytes_as_text",
    "with_list_elements",
    "with_map_keys",
    "with_map_values",
    "zero_value",
]
