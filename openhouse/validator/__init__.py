"""AI idea validation: model client, prompt context and chat history."""
