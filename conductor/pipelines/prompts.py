"""Default prompts for the built-in pipelines.

Deployments normally keep their prompt text in the prompt store; these are
working defaults so the pipelines run without one.
"""

import json

from conductor.pipelines.models import PipelineChainContext

MESOCYCLE_GENERATE_SYSTEM_PROMPT = """You are an expert strength coach designing one mesocycle (a multi-week training block).

Write the full block in plain language. Start each week with a line of the form
***** MICROCYCLE <n>: <theme> *****
followed by that week's intent, split, progression and notes.
Report the number of microcycles you wrote in number_of_microcycles."""

MESOCYCLE_MODIFY_SYSTEM_PROMPT = """You revise an existing mesocycle according to the user's change request.

Return the complete revised mesocycle in description, keeping the
***** MICROCYCLE <n>: <theme> ***** delimiters. If no change is needed return
the original text with was_modified set to false. Summarise your changes in
modifications."""

FORMATTED_SYSTEM_PROMPT = """Convert the training document you are given into clean Markdown.
Keep every week and every detail. Do not add new content."""

MESSAGE_SYSTEM_PROMPT = """Write a short, friendly SMS (under 320 characters) telling the user what
their training looks like. No Markdown, no emojis."""

PLAN_GENERATE_SYSTEM_PROMPT = """You are an expert strength coach writing a long-term fitness plan.

Open with the plan overview, then write one section per mesocycle, each starting
with a line of the form
--- MESOCYCLE <n>: <name> ---"""

PLAN_MODIFY_SYSTEM_PROMPT = """You revise an existing fitness plan according to the user's change request.

Return the complete revised plan in description, keeping the
--- MESOCYCLE <n>: <name> --- delimiters. If no change is needed return the
original plan with was_modified set to false. Summarise your changes in
modifications."""

PLAN_STRUCTURE_SYSTEM_PROMPT = """Extract the structure of the fitness plan you are given: its name, a one
sentence summary, the number of mesocycles and for each mesocycle its name,
length in weeks and focus."""


def mesocycle_generate_user_prompt(overview: str, fitness_profile: str | None) -> str:
    return (
        f"<MesocycleOverview>\n{overview}\n</MesocycleOverview>\n\n"
        f"<FitnessProfile>\n{fitness_profile or 'Not provided'}\n</FitnessProfile>\n\n"
        "Write the detailed mesocycle."
    )


def modify_user_prompt(current: str, change_request: str) -> str:
    return (
        f"<Current>\n{current}\n</Current>\n\n"
        f"<ChangeRequest>\n{change_request}\n</ChangeRequest>"
    )


def message_user_prompt(context: PipelineChainContext) -> str:
    payload = {
        "user_name": context.user.name,
        "user_profile": context.fitness_profile or "",
        "overview": context.long_form_output,
    }
    return json.dumps(payload)


def summary_message_user_prompt(raw: str) -> str:
    data = json.loads(raw)
    return (
        f"Write the welcome message for {data['user_name']}.\n\n"
        f"<Profile>\n{data.get('user_profile', '')}\n</Profile>\n\n"
        f"<Plan>\n{data['overview']}\n</Plan>"
    )


def plan_structure_user_prompt(plan_text: str) -> str:
    return f"<FitnessPlan>\n{plan_text}\n</FitnessPlan>"
