class DcaAlertError(Exception):
    """Base class for errors raised by the alert pipeline."""


class IdlError(DcaAlertError):
    """The program's instruction schema is missing or malformed."""


class DecodeError(DcaAlertError):
    """Instruction bytes do not match the schema."""


class ScheduleError(DcaAlertError):
    """Swap amounts cannot produce a completion schedule."""


class RpcError(DcaAlertError):
    """Unexpected payload from the Solana RPC node."""
