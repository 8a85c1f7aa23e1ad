"""PBL Blueprint - guided authoring core for project-based-learning blueprints.

Two collaborating pieces:
- ContentExtractor turns free-text responses into typed blueprint artifacts
- StageController walks the educator through the authoring stages

Usage:
    from pbl_blueprint import ContentExtractor, StageController

    controller = StageController(ContentExtractor())
    controller.begin()
    result = controller.submit("Systems change over time")
"""

__version__ = "0.1.0"

from pbl_blueprint.extraction import ContentExtractor
from pbl_blueprint.flow import StageController, StageTransitionError, TurnResult

__all__ = [
    "__version__",
    "ContentExtractor",
    "StageController",
    "StageTransitionError",
    "TurnResult",
]
