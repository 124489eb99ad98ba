"""
Swarm sequence feeds: identity, encoding and signed updates.

The node-facing `FeedWriter` and `FeedReader` live in the `writer` and
`reader` submodules; they depend on the Bee client, which in turn depends on
the primitives exported here.
"""

from .encoding import (
    decode_index,
    encode_index,
    increment_reference,
    make_feed_payload,
    parse_feed_payload,
)
from .identity import TEST_PRIVATE_KEY, FeedAddress, Identity, resolve_topic
from .soc import SignedUpdate, content_address, make_identifier, make_soc_address, sign_update

__all__ = [
    "FeedAddress",
    "Identity",
    "SignedUpdate",
    "TEST_PRIVATE_KEY",
    "content_address",
    "decode_index",
    "encode_index",
    "increment_reference",
    "make_feed_payload",
    "make_identifier",
    "make_soc_address",
    "parse_feed_payload",
    "resolve_topic",
    "sign_update",
]
