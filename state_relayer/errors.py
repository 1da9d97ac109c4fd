"""Exception hierarchy for the state relayer bot."""


class StateRelayerError(Exception):
    """Base class for every error raised by this package."""


class UpstreamFetchError(StateRelayerError):
    """The upstream statistics API could not be reached or answered with an error."""

    def __init__(self, message: str, *, url: str | None = None, status_code: int | None = None) -> None:
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class MalformedPayloadError(UpstreamFetchError):
    """The upstream API answered, but the payload does not have the expected shape."""


class InvalidNumericInput(StateRelayerError, ValueError):
    """A source value cannot be interpreted as a finite decimal number."""

    def __init__(self, value, reason: str = "not a decimal number") -> None:
        super().__init__(f"Invalid numeric input {value!r}: {reason}")
        self.value = value


class ProtocolError(StateRelayerError):
    """A StateRelayer call reverted."""


class Unauthorized(ProtocolError):
    """The caller is missing the role required by an entry point."""

    def __init__(self, account: str, role: bytes) -> None:
        super().__init__(f"AccessControl: account {account.lower()} is missing role 0x{role.hex()}")
        self.account = account
        self.role = role


class AlreadyInBatchCallByBot(ProtocolError):
    """batchCallByBot was entered while another batch is executing."""

    def __init__(self) -> None:
        super().__init__("ALREADY_IN_BATCH_CALL_BY_BOT")


class InvalidCallData(ProtocolError):
    """Calldata could not be decoded or carries inconsistent arguments."""


class SubmissionFailure(StateRelayerError):
    """An on-chain submission reverted or could not be confirmed."""

    def __init__(self, message: str, *, function: str, tx_hash: str | None = None) -> None:
        super().__init__(message)
        self.function = function
        self.tx_hash = tx_hash
