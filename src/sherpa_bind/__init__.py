"""sherpa-bind — ownership-safe Python bindings for the sherpa-onnx C API."""

__version__ = '0.1.0'
