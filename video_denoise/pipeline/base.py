"""Base filter stage interface for the pipeline system."""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Optional, TYPE_CHECKING

import numpy as np
from tqdm import tqdm

from video_denoise.frames import FrameSequence

if TYPE_CHECKING:
    from video_denoise.flow import FlowFields
    from video_denoise.parallel import WorkDispatcher

logger = logging.getLogger(__name__)


@dataclass
class StageInfo:
    """Information about a filter stage."""

    stage_id: str
    name: str
    category: str
    description: str = ""
    default_params: dict = field(default_factory=dict)


class FilterStage(ABC):
    """One denoising pass over a whole frame sequence.

    A stage reads its input sequence and builds a new one frame by frame in
    increasing index order. Within a frame the work is split into row bands
    run by the dispatcher; the frame is committed only after every band
    has finished.
    """

    # Class attributes - subclasses must define these
    STAGE_ID: str = ""
    STAGE_NAME: str = ""
    CATEGORY: str = ""  # spatial, temporal, regional
    DESCRIPTION: str = ""

    def __init__(self, **params):
        self.params = params

    def prepare(self, frames: FrameSequence, flows: Optional["FlowFields"]) -> None:
        """Validate inputs before any frame is processed.

        Raises:
            InvalidArgumentError: If the inputs cannot be processed
        """

    @abstractmethod
    def process_frame(
        self,
        index: int,
        source: FrameSequence,
        output: FrameSequence,
        dispatcher: "WorkDispatcher",
        flows: Optional["FlowFields"],
    ) -> Optional[np.ndarray]:
        """Process one frame.

        Args:
            index: Frame index
            source: Stage input (never modified)
            output: Stage output so far; frames before ``index`` are final
            dispatcher: Band worker pool
            flows: Flow fields, if supplied

        Returns:
            New frame, or None to copy the input frame through
        """
        pass

    def run(
        self,
        frames: FrameSequence,
        dispatcher: "WorkDispatcher",
        flows: Optional["FlowFields"] = None,
        show_progress: bool = False,
    ) -> FrameSequence:
        """Run the stage over every frame.

        Args:
            frames: Input sequence
            dispatcher: Band worker pool
            flows: Flow fields, if supplied
            show_progress: Show progress bar

        Returns:
            New FrameSequence; the input is left untouched
        """
        self.prepare(frames, flows)
        output = frames.copy()
        copied = 0

        for index in tqdm(range(len(frames)), desc=self.STAGE_NAME, disable=not show_progress):
            result = self.process_frame(index, frames, output, dispatcher, flows)
            if result is None:
                copied += 1
                continue
            output.replace(index, result)

        if copied:
            logger.debug("%s: %d/%d frames copied through", self.STAGE_ID, copied, len(frames))
        return output

    def describe(self) -> str:
        """Stage id with its parameters."""
        params = {k: v for k, v in self.params.items() if v is not None}
        if params:
            param_str = ",".join(f"{k}={v}" for k, v in params.items())
            return f"{self.STAGE_ID}:{param_str}"
        return self.STAGE_ID

    @classmethod
    def get_default_params(cls) -> dict[str, Any]:
        """Return default parameters for this stage.

        Returns:
            Dictionary of parameter names to default values
        """
        return {}

    @classmethod
    def get_info(cls) -> StageInfo:
        """Get stage information.

        Returns:
            StageInfo dataclass
        """
        return StageInfo(
            stage_id=cls.STAGE_ID,
            name=cls.STAGE_NAME,
            category=cls.CATEGORY,
            description=cls.DESCRIPTION,
            default_params=cls.get_default_params(),
        )


# Stage category constants
CATEGORY_SPATIAL = "spatial"  # median
CATEGORY_TEMPORAL = "temporal"  # temporal-direct, temporal-neighborhood, temporal-motion
CATEGORY_REGIONAL = "regional"  # blob

ALL_CATEGORIES = [
    CATEGORY_SPATIAL,
    CATEGORY_TEMPORAL,
    CATEGORY_REGIONAL,
]
