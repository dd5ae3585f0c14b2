"""Pipeline step definition."""

from dataclasses import dataclass, field
from typing import Any, Optional

from video_denoise.utils import InvalidArgumentError


@dataclass
class PipelineStep:
    """A single step in a denoising pipeline.

    Names a filter stage and the parameters it is built with.
    """

    stage_id: str
    params: dict[str, Any] = field(default_factory=dict)
    name: Optional[str] = None  # Custom step name for display

    def __post_init__(self):
        if not self.stage_id:
            raise InvalidArgumentError("stage_id is required")

    @property
    def display_name(self) -> str:
        """Get display name for this step."""
        return self.name or self.stage_id

    def to_dict(self) -> dict[str, Any]:
        """Serialize step to dictionary."""
        data = {"stage": self.stage_id}
        if self.params:
            data["params"] = self.params
        if self.name:
            data["name"] = self.name
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PipelineStep":
        """Create step from dictionary.

        Args:
            data: Dictionary with stage, params, name

        Returns:
            PipelineStep instance
        """
        if "stage" not in data:
            raise InvalidArgumentError(f"Pipeline step has no 'stage' key: {data}")
        return cls(
            stage_id=data["stage"],
            params=dict(data.get("params") or {}),
            name=data.get("name"),
        )

    @classmethod
    def from_string(cls, spec: str) -> "PipelineStep":
        """Parse step from string specification.

        Format: stage_id:key=value,key=value

        Examples:
            "median" -> PipelineStep("median", {})
            "median:radius=2" -> PipelineStep("median", {"radius": 2})
            "temporal-neighborhood:reducer=mean,blend=true"
                -> PipelineStep("temporal-neighborhood", {"reducer": "mean", "blend": True})

        Args:
            spec: Step specification string

        Returns:
            PipelineStep instance
        """
        parts = spec.split(":", 1)
        stage_id = parts[0].strip()

        params = {}
        if len(parts) > 1 and parts[1].strip():
            for pair in parts[1].split(","):
                if "=" not in pair:
                    raise InvalidArgumentError(f"Expected key=value in step '{spec}', got '{pair}'")
                key, value = pair.split("=", 1)
                params[key.strip()] = _parse_value(value.strip())

        return cls(stage_id=stage_id, params=params)

    def __str__(self) -> str:
        if self.params:
            param_str = ",".join(f"{k}={v}" for k, v in self.params.items())
            return f"{self.stage_id}:{param_str}"
        return self.stage_id


def _parse_value(value: str) -> Any:
    """Parse a string value to bool, int, float or string."""
    # Numbers stay numbers: "1" is a radius, not a flag
    if value.lower() in ("true", "yes"):
        return True
    if value.lower() in ("false", "no"):
        return False

    try:
        return int(value)
    except ValueError:
        pass

    try:
        return float(value)
    except ValueError:
        pass

    return value


def parse_steps_string(steps_str: str) -> list[PipelineStep]:
    """Parse multiple steps from a comma-separated string.

    Format: step1,step2:param=value,param=value,step3

    A comma-separated token holding ``=`` but no ``:`` continues the
    parameters of the previous step.

    Args:
        steps_str: Steps specification string

    Returns:
        List of PipelineStep instances
    """
    groups: list[str] = []
    for token in steps_str.split(","):
        token = token.strip()
        if not token:
            continue
        if "=" in token and ":" not in token:
            if not groups:
                raise InvalidArgumentError(f"Parameter '{token}' has no stage")
            groups[-1] += ("," if ":" in groups[-1] else ":") + token
        else:
            groups.append(token)

    return [PipelineStep.from_string(group) for group in groups]
