class GWMailError(Exception):
    """Base class for all gwmail exceptions."""
    pass


class ValidationError(GWMailError):
    """Raised when caller input is rejected before any remote call is made."""
    pass


class MailOperationError(GWMailError):
    """Raised when a remote Gmail call fails during a named phase.

    The message reads "<phase>: <cause>" so the failing step is visible
    without a traceback.
    """

    def __init__(self, phase: str, cause: Exception):
        self.phase = phase
        self.cause = cause
        super().__init__(f"{phase}: {cause}")
