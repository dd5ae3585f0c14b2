"""Stage registry for the pipeline system."""

from typing import Optional, Type, TYPE_CHECKING

from video_denoise.pipeline.base import ALL_CATEGORIES, FilterStage, StageInfo
from video_denoise.utils import InvalidArgumentError

if TYPE_CHECKING:
    from video_denoise.pipeline.step import PipelineStep


class StageRegistry:
    """Registry for discovering and building filter stages.

    Maps stage IDs to their classes for use in pipelines.
    """

    _stages: dict[str, Type[FilterStage]] = {}
    _discovered: bool = False

    @classmethod
    def register(cls, stage_class: Type[FilterStage]) -> Type[FilterStage]:
        """Register a stage class.

        Args:
            stage_class: Stage class to register

        Returns:
            The registered class (for use as decorator)
        """
        stage_id = stage_class.STAGE_ID
        if not stage_id:
            raise ValueError(f"Stage {stage_class} has no STAGE_ID")
        cls._stages[stage_id] = stage_class
        return stage_class

    @classmethod
    def discover(cls) -> None:
        """Register the built-in stages."""
        if cls._discovered:
            return

        from video_denoise.pipeline.stages import BUILTIN_STAGES
        for stage_class in BUILTIN_STAGES:
            cls.register(stage_class)

        cls._discovered = True

    @classmethod
    def get(cls, stage_id: str) -> Type[FilterStage]:
        """Get a stage class by ID.

        Raises:
            InvalidArgumentError: If the stage is unknown
        """
        cls.discover()
        if stage_id not in cls._stages:
            available = ", ".join(sorted(cls._stages.keys()))
            raise InvalidArgumentError(f"Unknown stage: {stage_id}. Available: {available}")
        return cls._stages[stage_id]

    @classmethod
    def create(cls, step: "PipelineStep") -> FilterStage:
        """Build a configured stage from a pipeline step.

        Args:
            step: Step naming the stage and its parameters

        Returns:
            Stage instance

        Raises:
            InvalidArgumentError: If the stage is unknown or a parameter is rejected
        """
        stage_class = cls.get(step.stage_id)
        try:
            return stage_class(**step.params)
        except TypeError as e:
            raise InvalidArgumentError(f"Bad parameters for stage '{step.stage_id}': {e}") from e

    @classmethod
    def list_all(cls) -> list[StageInfo]:
        """List all registered stages."""
        cls.discover()
        return [s.get_info() for s in cls._stages.values()]

    @classmethod
    def list_ids(cls) -> list[str]:
        """List all registered stage IDs, sorted."""
        cls.discover()
        return sorted(cls._stages.keys())

    @classmethod
    def by_category(cls, category: str) -> list[StageInfo]:
        """Get stages by category.

        Args:
            category: Category name (spatial, temporal, regional)

        Returns:
            List of StageInfo for matching stages
        """
        cls.discover()
        return [
            s.get_info()
            for s in cls._stages.values()
            if s.CATEGORY == category
        ]

    @classmethod
    def format_list(cls, category: Optional[str] = None) -> str:
        """Format stage list for display.

        Args:
            category: Filter by category (None = all)

        Returns:
            Formatted string
        """
        cls.discover()

        if category:
            stages = cls.by_category(category)
            lines = [f"Stages ({category})", "=" * 50, ""]
        else:
            stages = cls.list_all()
            lines = ["All Stages", "=" * 50, ""]

        by_cat: dict[str, list[StageInfo]] = {}
        for s in stages:
            by_cat.setdefault(s.category, []).append(s)

        for cat in ALL_CATEGORIES:
            if cat not in by_cat:
                continue
            lines.append(f"{cat.upper()}")
            for s in by_cat[cat]:
                lines.append(f"  {s.stage_id:<22} {s.name} - {s.description}")
            lines.append("")

        return "\n".join(lines)

    @classmethod
    def clear(cls) -> None:
        """Clear all registered stages. For testing only."""
        cls._stages.clear()
        cls._discovered = False
