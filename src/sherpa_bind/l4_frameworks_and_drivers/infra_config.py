"""Infrastructure settings for the native engine — lives in L4, not domain."""

from __future__ import annotations

from pydantic import BaseModel, Field


class NativeLibraryConfig(BaseModel):
    library: str | None = None  # None -> $SHERPA_ONNX_LIB, then the system search path
    features: list[str] = Field(default_factory=list)  # build features, e.g. ['cuda']
    quiet: bool = True  # silence engine fprintf output during model loading
    copies_config_strings: bool = True


class InfraConfig(BaseModel):
    """Groups all engine-specific settings outside the domain layer."""

    native: NativeLibraryConfig = Field(default_factory=NativeLibraryConfig)
