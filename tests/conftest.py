"""Pytest configuration and fixtures."""

import pytest

from pbl_blueprint.config.settings import Settings
from pbl_blueprint.extraction import ContentExtractor
from pbl_blueprint.models import ExtractionConfig


@pytest.fixture
def extraction_config() -> ExtractionConfig:
    """Default thresholds, independent of any local .env file."""
    return ExtractionConfig()


@pytest.fixture
def extractor(extraction_config) -> ContentExtractor:
    return ContentExtractor(extraction_config)


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None)


@pytest.fixture
def header_block_phases() -> str:
    """Phase plan in header-block form with sub-lines and a closing remark."""
    return """## Phase 1: Research
- Interview local experts
- Read recent articles

## Phase 2: Design
Sketch three possible solutions

## Phase 3: Build

Let me know if you'd like to adjust any of these phases!
"""


@pytest.fixture
def numbered_milestones() -> str:
    return """Here are the milestones I suggest:

1. Proposal: teams pitch their idea to the class
2. **Prototype**: a working model is tested
3. Showcase: final work is shared with the community
"""


@pytest.fixture
def weighted_rubric() -> str:
    return """1. Research (30%): uses credible sources
2. Design (30%): solution addresses the problem
3. Presentation (40%): communicates clearly to the audience
"""


@pytest.fixture
def impact_response() -> str:
    return (
        "Students will present to the city council through a public exhibition "
        "so that residents rethink how they recycle."
    )


@pytest.fixture
def session_answers() -> dict[str, str]:
    """One acceptable answer per data stage."""
    return {
        "IDEATION_BIG_IDEA": "Systems change over time",
        "IDEATION_EQ": "How might we reduce waste in our school?",
        "IDEATION_CHALLENGE": "Design a recycling plan for the school cafeteria",
        "JOURNEY_PHASES": "1. Research\n2. Design\n3. Build",
        "JOURNEY_ACTIVITIES": "- Waste audit\n- Interview custodians\n- Build prototypes",
        "JOURNEY_RESOURCES": "- City recycling coordinator",
        "DELIVER_MILESTONES": "1. Audit report\n2. Prototype bins\n3. Council pitch",
        "DELIVER_RUBRIC": (
            "1. Research (30%): uses data\n"
            "2. Design (30%): feasible plan\n"
            "3. Communication (40%): clear pitch"
        ),
        "DELIVER_IMPACT": (
            "Students will present to the school board through a live pitch "
            "so that the cafeteria adopts the plan."
        ),
    }
