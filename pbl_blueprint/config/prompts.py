"""Guidance copy shown to the educator at each authoring stage."""

from pbl_blueprint.models import BlueprintData, Stage

# Stage guides: what the stage asks for, why it matters, and a tip
STAGE_GUIDES: dict[Stage, dict[str, str]] = {
    Stage.IDEATION_INITIATOR: {
        "what": "Start with Ideation: a Big Idea, an Essential Question and a Challenge.",
        "why": "These three anchor every later decision in the project.",
        "tip": "Rough language is fine; everything can be refined later.",
    },
    Stage.IDEATION_BIG_IDEA: {
        "what": "Define the Big Idea, a transferable concept that anchors the project.",
        "why": "It keeps work meaningful and coherent, and guides every decision that follows.",
        "tip": "Write a short, strong concept; we can refine language later.",
    },
    Stage.IDEATION_EQ: {
        "what": "Shape an Essential Question that invites sustained inquiry.",
        "why": "A powerful question drives curiosity and connects the Big Idea to action.",
        "tip": "Make it open-ended, debate-worthy and phrased as a question.",
    },
    Stage.IDEATION_CHALLENGE: {
        "what": "Define an authentic Challenge for a real audience.",
        "why": "It creates purpose and raises quality by bringing work to the world.",
        "tip": "Name the audience and outcome; keep scope achievable in your timeframe.",
    },
    Stage.IDEATION_CLARIFIER: {
        "what": "Review the Big Idea, Essential Question and Challenge.",
        "why": "The journey is built on top of these, so now is the time to adjust them.",
        "tip": "Continue when they read well together, or edit any of them.",
    },
    Stage.JOURNEY_INITIATOR: {
        "what": "Map the Learning Journey: phases, activities and resources.",
        "why": "A clear journey builds momentum and manages complexity.",
        "tip": "Three or four phases are usually enough.",
    },
    Stage.JOURNEY_PHASES: {
        "what": "Outline the phases of the journey (e.g. Analyze, Brainstorm, Prototype, Evaluate).",
        "why": "Phases give students a visible path through the project.",
        "tip": "List one phase per line, numbered or bulleted.",
    },
    Stage.JOURNEY_ACTIVITIES: {
        "what": "List the key learning activities.",
        "why": "Activities turn each phase into concrete student work.",
        "tip": "One or two activities per phase, one per line.",
    },
    Stage.JOURNEY_RESOURCES: {
        "what": "Name helpful resources: experts, texts, tools or sites.",
        "why": "Good resources let students go deeper on their own.",
        "tip": "Optional; skip this step if you prefer to add resources later.",
    },
    Stage.JOURNEY_CLARIFIER: {
        "what": "Review the phases, activities and resources.",
        "why": "Deliverables are checkpoints along this journey.",
        "tip": "Continue, or edit any earlier step.",
    },
    Stage.DELIVERABLES_INITIATOR: {
        "what": "Finish with Deliverables: milestones, a rubric and an impact plan.",
        "why": "Clarity on outcomes and quality supports student success.",
        "tip": "Aim for three or more milestones and three to six rubric criteria.",
    },
    Stage.DELIVER_MILESTONES: {
        "what": "List the milestones students reach along the way.",
        "why": "Milestones make progress visible and create natural feedback points.",
        "tip": "Write each as 'Title: what completing it looks like'.",
    },
    Stage.DELIVER_RUBRIC: {
        "what": "Describe the rubric criteria for the final product.",
        "why": "Shared criteria tell students what quality looks like.",
        "tip": "Write each as 'Criterion (weight%): description'.",
    },
    Stage.DELIVER_IMPACT: {
        "what": "Describe the authentic audience and how students will share their work.",
        "why": "A real audience gives the work purpose beyond the classroom.",
        "tip": "Say who students present to, through what, and what it will achieve.",
    },
    Stage.DELIVERABLES_CLARIFIER: {
        "what": "Review milestones, rubric and impact plan.",
        "why": "This is the last check before the blueprint is ready to publish.",
        "tip": "Continue to publish, or edit any earlier step.",
    },
    Stage.PUBLISH: {
        "what": "Your blueprint is complete.",
        "why": "Every stage has been captured and reviewed.",
        "tip": "Export or share it from the blueprint view.",
    },
}

# Shown after a stage's value is accepted
TRANSITION_MESSAGES: dict[Stage, str] = {
    Stage.IDEATION_BIG_IDEA: "Big Idea captured. Next up: craft an Essential Question that invites inquiry.",
    Stage.IDEATION_EQ: "Excellent Essential Question. Let's define the authentic Challenge.",
    Stage.IDEATION_CHALLENGE: "Challenge locked in. Take a moment to review your ideation.",
    Stage.JOURNEY_PHASES: "Phases mapped. Now add the activities students will do.",
    Stage.JOURNEY_ACTIVITIES: "Activities added. Any resources to support them?",
    Stage.JOURNEY_RESOURCES: "Resources noted. Review the journey before moving on.",
    Stage.DELIVER_MILESTONES: "Milestones set. Next, the rubric criteria.",
    Stage.DELIVER_RUBRIC: "Rubric drafted. Finish with the audience and impact plan.",
    Stage.DELIVER_IMPACT: "Impact plan captured. Review your deliverables.",
}

REPROMPT_TEMPLATE = "{base} {reason}"

EDIT_TEMPLATE = "Editing this step. The current value is shown below; change it and submit."


def stage_prompt(stage: Stage, blueprint: BlueprintData) -> str:
    """Prompt text for entering a stage."""
    guide = STAGE_GUIDES[stage]
    prompt = guide["what"]

    # Tie later ideation prompts back to earlier answers
    if stage == Stage.IDEATION_EQ and blueprint.ideation.big_idea:
        prompt = (
            f'Think about your Big Idea: "{blueprint.ideation.big_idea}". '
            "What open-ended question will drive inquiry toward it?"
        )
    elif stage == Stage.IDEATION_CHALLENGE and blueprint.ideation.essential_question:
        prompt = (
            f'Your Essential Question is "{blueprint.ideation.essential_question}". '
            "What real-world challenge will students tackle to answer it?"
        )

    return f"{prompt} {guide['tip']}"


def reprompt(stage: Stage, blueprint: BlueprintData, warnings: tuple[str, ...]) -> str:
    """Prompt text after a response could not be accepted."""
    base = stage_prompt(stage, blueprint)
    reason = " ".join(w if w.endswith(".") else f"{w}." for w in warnings)
    return " ".join(REPROMPT_TEMPLATE.format(base=base, reason=reason).split())


def transition_message(accepted: Stage, entered: Stage, blueprint: BlueprintData) -> str:
    """Acknowledgement for an accepted stage plus the next stage's prompt."""
    message = TRANSITION_MESSAGES.get(accepted)
    next_prompt = stage_prompt(entered, blueprint)
    return f"{message} {next_prompt}" if message else next_prompt
