from .backend import InferenceBackend, ModelLoadError
from .darknet_backend import DarknetBackend, decode_darknet_outputs

__all__ = ["DarknetBackend", "InferenceBackend", "ModelLoadError", "decode_darknet_outputs"]
