"""Video Denoise - Parallel tiled denoising of grayscale video."""

__version__ = "0.1.0"

from video_denoise.config import Config
from video_denoise.utils import DenoiseError

__all__ = ["Config", "DenoiseError", "__version__"]
