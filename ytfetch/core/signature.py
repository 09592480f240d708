"""
Signature cipher boundary.

A ciphered format carries ``signatureCipher``: a query string holding the
media ``url``, a scrambled signature ``s`` and the name ``sp`` of the query
parameter the unscrambled signature must be appended as. Unscrambling needs
the per-release transform buried in the player JavaScript; that transform is
not implemented here and is plugged in through the SignatureResolver protocol.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol
from urllib.parse import parse_qs, quote

from ..errors import CipherNotFoundError, DecipherError

logger = logging.getLogger(__name__)


class SignatureResolver(Protocol):
    def resolve(self, cipher: str, signature_timestamp: int, player_asset: bytes) -> str:
        """Return a directly fetchable media URL for ``cipher``."""
        ...


@dataclass(frozen=True)
class SignatureCipher:
    url: str
    signature: str
    sp: str = "signature"

    def with_signature(self, signature: str) -> str:
        separator = "&" if "?" in self.url else "?"
        return f"{self.url}{separator}{self.sp}={quote(signature, safe='')}"


def parse_signature_cipher(cipher: str) -> SignatureCipher:
    if not cipher:
        raise CipherNotFoundError()

    sc = parse_qs(cipher)
    url = sc.get("url", [None])[0]
    encrypted_sig = sc.get("s", [None])[0]
    sp = sc.get("sp", ["signature"])[0]

    if not url or not encrypted_sig:
        raise DecipherError("signature cipher is missing the url or s parameter")
    return SignatureCipher(url=url, signature=encrypted_sig, sp=sp)


SignatureTransform = Callable[[str, bytes], str]


class TransformSignatureResolver:
    """
    Resolve ciphers with a caller-supplied transform.

    ``transform(scrambled_signature, player_asset)`` must return the
    unscrambled signature for the player release in ``player_asset``.
    """

    def __init__(self, transform: SignatureTransform):
        self._transform = transform

    def resolve(self, cipher: str, signature_timestamp: int, player_asset: bytes) -> str:
        parsed = parse_signature_cipher(cipher)
        try:
            signature = self._transform(parsed.signature, player_asset)
        except Exception as e:
            logger.warning("Signature transform failed (sts=%s): %s", signature_timestamp, e)
            raise DecipherError(f"failed to decipher signature: {e}") from e

        if not signature:
            raise DecipherError("signature transform returned an empty signature")
        return parsed.with_signature(signature)


class UnconfiguredSignatureResolver:
    """Default resolver used when no transform has been plugged in."""

    def resolve(self, cipher: str, signature_timestamp: int, player_asset: bytes) -> str:
        parse_signature_cipher(cipher)
        raise DecipherError("no signature transform configured for ciphered formats")
