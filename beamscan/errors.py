"""Exception hierarchy for the BeamScan serial engine."""


class BeamScanError(RuntimeError):
    """Base class for all BeamScan errors."""
    pass


class DeviceNotFoundError(BeamScanError):
    """Raised when no scanner could be found on any serial port."""
    pass


class SampleInProgressError(BeamScanError):
    """Raised when a sample is requested while another is still outstanding."""
    pass


class ConnectionCloseError(BeamScanError):
    """Raised when the serial link could not be released cleanly."""
    def __init__(self, message, port=None):
        super().__init__(message)
        self.port = port
