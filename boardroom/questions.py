from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple


_JSON_INSTRUCTION = 'Respond with JSON: {"isSpecific": boolean, "reason": string}'


@dataclass(frozen=True)
class QuestionSpec:
    id: str
    question: str
    gate_prompt: str
    challenge_messages: Tuple[str, ...]
    min_words: int = 5
    subtext: str = ""
    placeholder: str = ""


AUDIT_QUESTIONS: Tuple[QuestionSpec, ...] = (
    QuestionSpec(
        id="avoided_decision",
        question="What decision have you been avoiding?",
        subtext="Think about conversations you've postponed, choices you've deferred, or actions you've rationalized delaying.",
        placeholder="I've been avoiding the decision to...",
        gate_prompt=(
            "Evaluate if this response describes a SPECIFIC decision being avoided.\n"
            "A specific response includes:\n"
            "- A concrete action or choice (not just a feeling or general area)\n"
            "- Who is involved or affected\n"
            "- What the actual decision point is\n\n"
            'Vague examples: "having difficult conversations", "making changes", "addressing issues"\n'
            'Specific examples: "telling my manager I want to transition to the data science team", '
            '"deciding whether to accept the promotion that requires relocation"\n\n'
            f"{_JSON_INSTRUCTION}"
        ),
        challenge_messages=(
            "That sounds like a category of decisions. What's ONE specific decision you're avoiding right now?",
            "I need you to get more concrete. What's the actual choice you need to make?",
            "Imagine you had to make this decision in the next 24 hours. What exactly would you be deciding?",
        ),
    ),
    QuestionSpec(
        id="avoided_conversation",
        question="What conversation have you been avoiding?",
        subtext="Consider feedback you haven't given, requests you haven't made, or boundaries you haven't set.",
        placeholder="I've been putting off talking to...",
        gate_prompt=(
            "Evaluate if this response describes a SPECIFIC conversation being avoided.\n"
            "A specific response includes:\n"
            "- WHO the conversation is with (role or relationship)\n"
            "- WHAT the conversation is about\n"
            "- The actual message or request\n\n"
            'Vague examples: "giving feedback", "discussing expectations", "having hard talks"\n'
            "Specific examples: \"telling Sarah that her code reviews are blocking the team's velocity\", "
            '"asking my skip-level if there\'s a path to senior engineer this year"\n\n'
            f"{_JSON_INSTRUCTION}"
        ),
        challenge_messages=(
            "Who specifically do you need to talk to, and what do you need to say?",
            "Picture yourself having this conversation. Who's across from you and what are the first words out of your mouth?",
            "What's the one sentence you've rehearsed but never said?",
        ),
    ),
    QuestionSpec(
        id="comfort_work",
        question="What 'comfort work' filled your calendar this week?",
        subtext="Comfort work feels productive but doesn't move important things forward. It's often what you do instead of the hard thing.",
        placeholder="I spent time on...",
        gate_prompt=(
            "Evaluate if this response identifies SPECIFIC comfort work activities.\n"
            "A specific response includes:\n"
            "- Actual activities or tasks (not just categories)\n"
            "- Time indicators or frequency\n"
            '- Recognition of why it was "comfort" vs necessary\n\n'
            'Vague examples: "meetings", "emails", "busy work"\n'
            'Specific examples: "reorganizing my Notion workspace for the third time instead of writing the '
            'project proposal", "taking on two more code reviews when I was already behind on my own deliverables"\n\n'
            f"{_JSON_INSTRUCTION}"
        ),
        challenge_messages=(
            "What specifically did you do? Not the category, but the actual activity.",
            "If I watched a video of your week, what would I see you doing that felt productive but wasn't?",
            "What did you do this week that you could have NOT done and nothing bad would have happened?",
        ),
    ),
    QuestionSpec(
        id="progress_claim",
        question="What progress are you claiming this week?",
        subtext="What moved forward? What can you point to as evidence of advancement?",
        placeholder="I made progress on...",
        gate_prompt=(
            "Evaluate if this response describes SPECIFIC, verifiable progress.\n"
            "A specific response includes:\n"
            "- A concrete deliverable or outcome\n"
            '- Measurable advancement (not just "worked on")\n'
            "- Something that could be shown or demonstrated\n\n"
            'Vague examples: "made progress", "moved things forward", "worked on the project"\n'
            "Specific examples: \"shipped the authentication feature and it's now in production\", "
            '"had 3 customer interviews and documented the findings in Notion"\n\n'
            f"{_JSON_INSTRUCTION}"
        ),
        challenge_messages=(
            "What artifact exists now that didn't exist before? What could you show someone?",
            "If I asked for a receipt of this progress, what would you hand me?",
            "Complete this sentence with something concrete: 'This week I finished ___'",
        ),
    ),
    QuestionSpec(
        id="next_week_bet",
        question="What's your bet for next week?",
        subtext="A bet is a prediction about what you'll accomplish. It should be specific enough that you'll know if you were wrong.",
        placeholder="Next week I will...",
        gate_prompt=(
            "Evaluate if this response is a SPECIFIC, falsifiable bet.\n"
            "A specific bet includes:\n"
            "- A concrete action or deliverable\n"
            "- Clear success criteria (you'll know if it happened)\n"
            "- Something that could be verified next week\n\n"
            'Vague examples: "make progress", "focus on X", "try to improve"\n'
            'Specific examples: "ship the MVP to 5 beta users and get feedback from at least 3", '
            '"have the compensation conversation with my manager and get a clear answer"\n\n'
            f"{_JSON_INSTRUCTION}"
        ),
        challenge_messages=(
            "How will you know next week if this happened or not? Make it binary.",
            "What would make you wrong? If you can't fail, it's not a real bet.",
            "State it as: 'I bet that by Friday I will have ___'. Fill in something concrete.",
        ),
    ),
)


def get_question(question_id: str) -> Optional[QuestionSpec]:
    return next((q for q in AUDIT_QUESTIONS if q.id == question_id), None)


def get_question_by_index(index: int) -> Optional[QuestionSpec]:
    if 0 <= index < len(AUDIT_QUESTIONS):
        return AUDIT_QUESTIONS[index]
    return None
