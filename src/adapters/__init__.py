"""Firebase REST adapters."""

from src.adapters.firebase_rest_client import (
    FirebaseRestClient,
    create_firebase_rest_client,
)
from src.adapters.firestore_codec import (
    decode_document,
    decode_value,
    encode_document,
    encode_value,
)

__all__ = [
    "FirebaseRestClient",
    "create_firebase_rest_client",
    "decode_document",
    "decode_value",
    "encode_document",
    "encode_value",
]
