"""
WS-Management client configuration.
"""

from dataclasses import dataclass

HTTP_PORT = 16992
HTTPS_PORT = 16993


@dataclass(frozen=True, kw_only=True)
class WsmanConfig:
    """
    Attributes:
        target: Host name or IP address of the managed device.
        username: Account name. Empty means unauthenticated requests.
        password: Account password.
        use_digest: Negotiate HTTP Digest auth instead of sending Basic credentials.
        use_tls: Talk HTTPS instead of plain HTTP.
        self_signed_allowed: Skip certificate verification (device-issued certificates).
        port: Endpoint port. Defaults to 16992 (HTTP) or 16993 (HTTPS).
        path: Endpoint path, also sent as the envelope destination address.
        timeout: Connect/read timeout for each HTTP attempt in seconds.
        deadline: Overall budget for one exchange, auth retry included. None disables it.
        operation_timeout: WS-Management OperationTimeout header value.
        max_elements: Page size hint sent with every Pull.
        max_characters: Character budget hint sent with every Pull.
        optimize_enumeration: Ask for the first page inside the Enumerate response.
        user_agent: User-Agent header value.
    """

    target: str
    username: str = ""
    password: str = ""
    use_digest: bool = False
    use_tls: bool = False
    self_signed_allowed: bool = False
    port: int | None = None
    path: str = "/wsman"
    timeout: float = 10.0
    deadline: float | None = None
    operation_timeout: str = "PT60S"
    max_elements: int = 999
    max_characters: int = 99999
    optimize_enumeration: bool = False
    user_agent: str = "wsman-python/0.1"

    def __post_init__(self) -> None:
        if not self.target:
            msg = "target must not be empty"
            raise ValueError(msg)
        if self.port is not None and not 0 < self.port < 65536:
            msg = "port must be between 1 and 65535"
            raise ValueError(msg)
        if not self.path.startswith("/"):
            msg = "path must start with '/'"
            raise ValueError(msg)
        if self.timeout <= 0:
            msg = "timeout must be positive"
            raise ValueError(msg)
        if self.deadline is not None and self.deadline <= 0:
            msg = "deadline must be positive"
            raise ValueError(msg)
        if self.max_elements <= 0:
            msg = "max_elements must be positive"
            raise ValueError(msg)
        if self.max_characters <= 0:
            msg = "max_characters must be positive"
            raise ValueError(msg)
        if bool(self.username) != bool(self.password):
            msg = "username and password must be given together"
            raise ValueError(msg)

    @property
    def has_credentials(self) -> bool:
        return bool(self.username) and bool(self.password)

    @property
    def endpoint(self) -> str:
        """Full URL of the WS-Management endpoint."""
        scheme = "https" if self.use_tls else "http"
        port = self.port or (HTTPS_PORT if self.use_tls else HTTP_PORT)
        return f"{scheme}://{self.target}:{port}{self.path}"
