"""Policy switches controlling which constituents receive the optional wrapper."""

from collections.abc import Callable, Iterable
from dataclasses import dataclass, replace


@dataclass(frozen=True, slots=True)
class Policy:
    """Immutable transformation policy.

    Struct fields are always wrapped; these switches only govern container
    constituents and the byte-sequence special case.
    """

    bytes_as_text: bool = False
    wrap_array_elements: bool = True
    wrap_list_elements: bool = True
    wrap_map_keys: bool = True
    wrap_map_values: bool = True


Option = Callable[[Policy], Policy]

DEFAULT_POLICY = Policy()

# For decoding external payloads: byte sequences become text and containers
# keep their bare constituents.
PAYLOAD_DECODING = Policy(
    bytes_as_text=True,
    wrap_array_elements=False,
    wrap_list_elements=False,
    wrap_map_keys=False,
    wrap_map_values=False,
)


def with_bytes_as_text(enabled: bool = True) -> Option:
    """Collapse byte arrays and byte lists into a single optional string."""
    return lambda policy: replace(policy, bytes_as_text=enabled)


def with_array_elements(wrap: bool = True) -> Option:
    """Keep one optional level on array elements, or strip it."""
    return lambda policy: replace(policy, wrap_array_elements=wrap)


def with_list_elements(wrap: bool = True) -> Option:
    """Keep one optional level on list elements, or strip it."""
    return lambda policy: replace(policy, wrap_list_elements=wrap)


def with_map_keys(wrap: bool = True) -> Option:
    """Keep one optional level on map keys, or strip it."""
    return lambda policy: replace(policy, wrap_map_keys=wrap)


def with_map_values(wrap: bool = True) -> Option:
    """Keep one optional level on map values, or strip it."""
    return lambda policy: replace(policy, wrap_map_values=wrap)


def payload_decoding() -> Option:
    """Switch to the external payload decoding preset.

    Options given after this one still apply on top of the preset.
    """
    return lambda _policy: PAYLOAD_DECODING


def build_policy(options: Iterable[Option], base: Policy = DEFAULT_POLICY) -> Policy:
    """Apply options left to right over a base policy."""
    policy = base
    for option in options:
        policy = option(policy)
    return policy
