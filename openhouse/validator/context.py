"""Prompt assembly for idea validation."""

MAX_CONTEXT_MESSAGES = 6  # last three exchanges

OLDER_CONTEXT_SUMMARY = (
    "Previous conversation context: User discussed their startup idea and received "
    "validation feedback covering market analysis, competition, and viability."
)

SYSTEM_PROMPT = """You are an expert startup idea validator and business advisor. Your role is to:

1. **Thoroughly analyze startup ideas** with brutal honesty
2. **Provide real-time market research** using latest web data
3. **Identify potential problems, competition, and opportunities**
4. **Give actionable feedback** on viability, market fit, and execution
5. **Be constructive but realistic** - point out red flags and strengths
6. **Maintain conversation context** - remember what was discussed earlier and build upon it

When analyzing ideas:
- Research current market trends and competitors
- Assess market size and growth potential
- Evaluate technical feasibility
- Consider monetization strategies
- Identify key risks and mitigation strategies
- Suggest pivots or improvements if needed
- Reference previous discussion points when relevant

Be conversational, encouraging, but HONEST. If an idea has major flaws, explain them clearly with data.
"""


def build_conversation_context(
    messages: list[dict], previous_context: str | None = None
) -> tuple[list[dict], str]:
    """Trim history to the most recent messages.

    Args:
        messages: Full chat history, oldest first
        previous_context: Summary carried over from earlier turns

    Returns:
        (recent messages, context summary)
    """
    if len(messages) <= MAX_CONTEXT_MESSAGES:
        return messages, previous_context or ""

    recent = messages[-MAX_CONTEXT_MESSAGES:]
    summary = previous_context or OLDER_CONTEXT_SUMMARY
    return recent, summary


def build_system_prompt(web_context: str, conversation_context: str | None = None) -> str:
    """System prompt with optional carried-over context and web results."""
    prompt = SYSTEM_PROMPT
    if conversation_context:
        prompt += f"\n\n--- Previous Conversation Context ---\n{conversation_context}\n"
    if web_context:
        prompt += f"\n{web_context}"
    return prompt


def build_search_query(idea_summary: str | None, last_user_message: str) -> str:
    """Search query favouring the idea summary over the latest message."""
    if idea_summary:
        return f"{idea_summary} startup market analysis competition"
    return f"{last_user_message} startup idea market research"


def build_chat_messages(
    messages: list[dict], web_context: str, conversation_context: str | None = None
) -> list[dict]:
    """OpenAI-format message list: system prompt followed by recent history."""
    recent, summary = build_conversation_context(messages, conversation_context)
    system_prompt = build_system_prompt(web_context, summary or None)
    return [{"role": "system", "content": system_prompt}] + [
        {"role": m["role"], "content": m["content"]} for m in recent
    ]
