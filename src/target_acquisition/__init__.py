"""Target-acquisition package – re-export high-level API."""
from .processor import TargetingProcessor        # noqa: F401
from .config import (                            # noqa: F401
    CameraConfig, PipelineConfig, LoggingConfig,
    PublisherConfig, VisionConfig, load_config,
)
from .selector import select_target              # noqa: F401
