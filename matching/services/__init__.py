"""
Matching Services

- llm: OpenAI-compatible chat client shared by the LLM-backed services
- explanations: natural-language explanation and gaps for a scored match
- extraction: candidate and job matrix extraction from free text
- matching: single-pair matching pipeline (filter, score, explain, persist)
"""
