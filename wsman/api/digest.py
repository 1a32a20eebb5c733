"""
HTTP Digest authentication (RFC 7616 / RFC 2617) for one endpoint.
"""

import hashlib
import re
import secrets
import threading
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import structlog

from wsman.exceptions import AuthParseError

logger = structlog.get_logger(__name__)

_PARAM_RE = re.compile(r'([\w-]+)\s*=\s*("(?:[^"\\]|\\.)*"|[^,\s]*)')

_HASHES: dict[str, Callable[..., Any]] = {
    "MD5": hashlib.md5,
    "SHA-256": hashlib.sha256,
}


def _generate_cnonce() -> str:
    return secrets.token_hex(8)


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] == '"':
        return re.sub(r"\\(.)", r"\1", value[1:-1])
    return value


def _quote(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def _challenge_params(text: str) -> dict[str, str]:
    """Collect auth-params up to the start of the next challenge in the header."""
    params: dict[str, str] = {}
    position = 0
    for match in _PARAM_RE.finditer(text):
        # A bare token between two params is the scheme of another challenge.
        if re.search(r"[^\s,]", text[position : match.start()]):
            break
        params[match.group(1).lower()] = _unquote(match.group(2))
        position = match.end()
    return params


@dataclass(frozen=True, kw_only=True)
class DigestChallenge:
    """
    Parameters of one ``WWW-Authenticate: Digest`` challenge.

    Attributes:
        realm: Protection space announced by the server.
        nonce: Server nonce the next authorizations are computed against.
        opaque: Value echoed back verbatim, if the server sent one.
        qop: Selected quality of protection (``auth``), or None for RFC 2069 digests.
        algorithm: Hash algorithm name as announced (``MD5`` when absent).
        stale: Whether the server rejected a previous nonce as stale.
    """

    realm: str = ""
    nonce: str = ""
    opaque: str | None = None
    qop: str | None = "auth"
    algorithm: str = "MD5"
    stale: bool = False

    @classmethod
    def parse(cls, header: str) -> "DigestChallenge":
        """
        Parse a ``WWW-Authenticate`` header value.

        Raises:
            AuthParseError: If the header holds no usable Digest challenge.
        """
        match = re.search(r"(?:^|[\s,])Digest\s+", header or "", flags=re.IGNORECASE)
        if match is None:
            msg = "No Digest challenge in header"
            raise AuthParseError(msg, header=header)

        params = _challenge_params(header[match.end() :])
        realm = params.get("realm")
        nonce = params.get("nonce")
        if not realm:
            msg = "Digest challenge is missing a realm"
            raise AuthParseError(msg, header=header)
        if not nonce:
            msg = "Digest challenge is missing a nonce"
            raise AuthParseError(msg, header=header)

        algorithm = params.get("algorithm") or "MD5"
        if algorithm.upper().removesuffix("-SESS") not in _HASHES:
            msg = f"Unsupported digest algorithm {algorithm}"
            raise AuthParseError(msg, header=header)

        qop = None
        if "qop" in params:
            offered = [q.strip().lower() for q in params["qop"].split(",")]
            if "auth" not in offered:
                msg = "Digest challenge does not offer qop=auth"
                raise AuthParseError(msg, header=header)
            qop = "auth"

        return cls(
            realm=realm,
            nonce=nonce,
            opaque=params.get("opaque"),
            qop=qop,
            algorithm=algorithm,
            stale=params.get("stale", "").lower() == "true",
        )


class DigestAuthenticator:
    """
    Computes Digest ``Authorization`` values for one set of credentials.

    Owns the current challenge and its nonce counter. Both are guarded by a
    lock, so concurrent requests on one session never reuse a counter value.
    Before the first challenge arrives, ``authorize`` still returns a header
    computed against an empty challenge; the server answers it with a 401
    carrying the real challenge.
    """

    def __init__(
        self,
        username: str,
        password: str,
        *,
        cnonce_factory: Callable[[], str] = _generate_cnonce,
    ) -> None:
        """
        Args:
            username: Account name.
            password: Account password.
            cnonce_factory: Source of client nonces.
        """
        self._username = username
        self._password = password
        self._cnonce_factory = cnonce_factory

        self._challenge = DigestChallenge()
        self._nonce_count = 1
        self._lock = threading.Lock()

    @property
    def challenge(self) -> DigestChallenge:
        return self._challenge

    @property
    def nonce_count(self) -> int:
        """Counter value the next authorization will use."""
        return self._nonce_count

    @property
    def has_challenge(self) -> bool:
        return bool(self._challenge.nonce)

    def on_challenge(self, header: str | None) -> None:
        """
        Replace the current challenge with the one in ``header``.

        Resets the nonce counter to 1.

        Raises:
            AuthParseError: If the header holds no usable challenge. The
                previous challenge is kept in that case.
        """
        challenge = DigestChallenge.parse(header or "")
        with self._lock:
            self._challenge = challenge
            self._nonce_count = 1
        logger.debug("Digest challenge accepted", realm=challenge.realm, stale=challenge.stale)

    def authorize(self, method: str, uri: str) -> str:
        """
        Compute the ``Authorization`` header value for one request.

        Args:
            method: HTTP method of the request.
            uri: Request target (path) the digest covers.

        Returns:
            A ``Digest ...`` header value.
        """
        with self._lock:
            challenge = self._challenge
            nonce_count = self._nonce_count
            self._nonce_count += 1

        algorithm = challenge.algorithm.upper()
        hash_fn = _HASHES[algorithm.removesuffix("-SESS")]

        def h(value: str) -> str:
            return hash_fn(value.encode("utf-8")).hexdigest()

        cnonce = self._cnonce_factory()
        nc = f"{nonce_count:08x}"

        ha1 = h(f"{self._username}:{challenge.realm}:{self._password}")
        if algorithm.endswith("-SESS"):
            ha1 = h(f"{ha1}:{challenge.nonce}:{cnonce}")
        ha2 = h(f"{method}:{uri}")

        if challenge.qop:
            response = h(f"{ha1}:{challenge.nonce}:{nc}:{cnonce}:{challenge.qop}:{ha2}")
        else:
            response = h(f"{ha1}:{challenge.nonce}:{ha2}")

        parts = [
            f"username={_quote(self._username)}",
            f"realm={_quote(challenge.realm)}",
            f"nonce={_quote(challenge.nonce)}",
            f"uri={_quote(uri)}",
            f"response={_quote(response)}",
        ]
        if challenge.qop:
            parts += [f"qop={challenge.qop}", f"nc={nc}", f"cnonce={_quote(cnonce)}"]
        if challenge.opaque is not None:
            parts.append(f"opaque={_quote(challenge.opaque)}")
        parts.append(f"algorithm={challenge.algorithm}")
        return "Digest " + ", ".join(parts)

