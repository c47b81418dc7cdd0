"""Shared prompt fragments for agents."""

# System prompts
ANALYTICAL_TONE = """You are an analytical expert who writes fair, job-relevant assessments.
Focus on objectivity and on what the role actually requires."""

# Common instructions
JSON_OUTPUT = """Your response must be valid JSON that can be parsed directly.
Do not include any markdown formatting or code blocks.
Ensure all strings are properly escaped."""
