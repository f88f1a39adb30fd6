"""
Features Module - Self-contained feature units.

Each feature is a modular unit with its own logic:
- knowledge: meeting knowledge enrichment, storage, retrieval and scheduling
- tools: AI tools the conversational agent calls mid-conversation
"""
