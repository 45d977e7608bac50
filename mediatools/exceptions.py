"""Custom Exceptions for the mediatools package."""

class MediaToolsError(Exception):
    """Base class for exceptions in this module."""
    pass

class ConfigurationError(MediaToolsError):
    """Exception raised for errors in configuration loading."""
    pass

class TranscriptionError(MediaToolsError):
    """Exception raised when the ASR pipeline returns an unusable result."""
    pass

class ImageFormatError(MediaToolsError, ValueError):
    """Exception raised when image data is not a format piexif can handle."""
    pass

class MetadataEncodingError(MediaToolsError):
    """Exception raised when a metadata value cannot be encoded as EXIF."""
    pass

class FileSystemError(MediaToolsError):
    """Exception raised for file system related errors (permissions, not found etc)."""
    pass
