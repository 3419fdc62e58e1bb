"""Services package: devices, template library and the frame pipeline."""

from .webcam_service import WebcamService
from .template_library import TemplateLibrary, decode_color_image
from .signal_transport import SerialSignalTransport, LoggingSignalTransport
from .annotation_service import AnnotationService
from .pipeline import FramePipeline

__all__ = [
    "WebcamService", "TemplateLibrary", "decode_color_image",
    "SerialSignalTransport", "LoggingSignalTransport",
    "AnnotationService", "FramePipeline",
]
