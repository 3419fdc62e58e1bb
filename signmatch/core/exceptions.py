"""Custom exceptions for the application."""

class ApplicationError(Exception):
    """Base application error."""
    pass

class ConfigError(ApplicationError):
    """Configuration-related errors."""
    pass

class TemplateLoadError(ApplicationError):
    """A reference image could not be decoded into a template."""
    pass

class WebcamError(ApplicationError):
    """Webcam access errors."""
    pass

class SignalTransportError(ApplicationError):
    """Signal transport (serial port) errors."""
    pass

class FeatureExtractionError(ApplicationError, ValueError):
    """Region too small to be divided into the feature grid."""
    pass
