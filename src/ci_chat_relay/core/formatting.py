"""Chat text rendering for command results."""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from ci_chat_relay.models.jenkins import BuildParameter, JobStatus, StatusLookup

HELP_TEXT = (
    "Available Commands:\n"
    "`!list` - Fetches and displays the Jenkins job list\n"
    "`!run <pipeline_name>` - Triggers a Jenkins pipeline with the specified name\n"
    "`!proceed <pipeline_name>` - Proceeds the current stage of a pipeline\n"
    "`!abort <pipeline_name>` - Aborts the current stage of a pipeline\n"
    "`!parameters <pipeline_name>` - Fetches the parameters from the previous build\n"
    "`!gif <search_term>` - Posts a GIF\n"
    "\n"
    "Triggering a pipeline with parameters, one `<key> <value>` per line. "
    "Blank lines are ignored; repeat a key to pass several values:\n"
    "```\n"
    "!runparams\n"
    "<pipeline_name>\n"
    "parameterKey parameterValue1\n"
    "parameterKey2 Parameter value 2\n"
    "parameterKey2 Another value\n"
    "```"
)


def render_job_list(
    lookups: Iterable[StatusLookup],
    glyphs: Mapping[JobStatus, str],
) -> str:
    """Render one line per job: status glyph and bold name.

    A lookup that failed renders with the UNKNOWN glyph; it never hides
    the rest of the list.
    """
    lines = []
    for lookup in lookups:
        status = lookup.status if lookup.ok else JobStatus.UNKNOWN
        lines.append(f"{glyphs[status]} *{lookup.job_name}*")
    if not lines:
        return "_No jobs found_"
    return "\n".join(lines)


def render_parameters(parameters: Iterable[BuildParameter]) -> str:
    """Render build parameters as bold-name blocks."""
    rendered = "".join(f"\n\n*{p.name}:*\n{p.value}" for p in parameters)
    return rendered or " _none_"
