"""Custom Exceptions for the VadCondense application."""

class VadCondenseError(Exception):
    """Base class for exceptions in this module."""
    kind = "unexpected"

class ConfigurationError(VadCondenseError):
    """Exception raised for errors in configuration loading or option validation."""
    kind = "configuration"

class DecodeError(VadCondenseError):
    """Exception raised when an input file cannot be decoded to PCM samples."""
    kind = "decode"

class DetectionError(VadCondenseError):
    """Exception raised when the speech detection model fails to load or run."""
    kind = "detection"

class NoSpeechDetectedError(DetectionError):
    """Exception raised when detection succeeds but finds no speech at all."""
    kind = "no_speech"

class CompileError(VadCondenseError):
    """Exception raised when a filter expression cannot be built from the segments."""
    kind = "compile"

class EncodeError(VadCondenseError):
    """Exception raised when ffmpeg fails to write the condensed output."""
    kind = "encode"

class PathError(VadCondenseError):
    """Exception raised when an output path cannot be resolved."""
    kind = "path"

class FileSystemError(VadCondenseError):
    """Exception raised for file system related errors (permissions, not found etc)."""
    kind = "filesystem"
