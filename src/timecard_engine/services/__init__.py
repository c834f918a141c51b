"""Services that sit between the database and the transformation core."""

from timecard_engine.services.config_resolver import ConfigResolver, apply_incentive_overrides
from timecard_engine.services.generation import GenerationService

__all__ = ["ConfigResolver", "GenerationService", "apply_incentive_overrides"]
