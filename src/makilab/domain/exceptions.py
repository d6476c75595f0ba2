"""Domain exceptions."""


class CapabilityRegistrationError(Exception):
    """Raised when a capability cannot be registered.

    Capability names must be unique, non-empty, free of the capability
    separator and must not start with the bridge prefix.
    """

    def __init__(self, capability_name: str, message: str = "") -> None:
        """Initialize.

        Args:
            capability_name: Offending capability name.
            message: Error message (optional).
        """
        self.capability_name = capability_name
        super().__init__(message or f"Invalid capability name: {capability_name!r}")
