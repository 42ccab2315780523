from ...errors import DeviceNotFoundError


class ProbeError(RuntimeError):
    """Raised when a candidate port could not be probed."""
    def __init__(self, message, port):
        super().__init__(message)
        self.port = port


__all__ = ["DeviceNotFoundError", "ProbeError"]
